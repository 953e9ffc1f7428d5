from reelhost.settings.manager import SettingsManager
from reelhost.settings.models import AppModel

__all__ = ["AppModel", "SettingsManager"]
