from typing import Protocol, runtime_checkable

from reelhost.library.models import TorrentDetails

TorrentIdOrHash = int | str


@runtime_checkable
class TorrentEngine(Protocol):
    """
    The download engine the library talks to.

    Implementations raise on unknown torrents; the library service turns
    any such failure into a TorrentEngineException.
    """

    def torrent_details(self, id_or_hash: TorrentIdOrHash) -> TorrentDetails: ...

    def list_torrents(self) -> list[TorrentDetails]: ...
