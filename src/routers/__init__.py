from routers.file import router as file_router

__all__ = ["file_router"]
