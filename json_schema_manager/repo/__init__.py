from .gitter import Change, Gitter, Revision

__all__ = ["Change", "Gitter", "Revision"]
