"""
Web module - server-rendered pages guarded by role.
"""

from app.web.pages import router as pages_router, PageRedirect, page_redirect_handler

__all__ = ["pages_router", "PageRedirect", "page_redirect_handler"]
