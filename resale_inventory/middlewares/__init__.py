"""Request-scoped context shared by the middleware, the auth dependency and
the JSON log formatter."""

from .request_id import REQUEST_ID_HEADER, RequestIdMiddleware, principal_ctx_var, request_id_ctx_var

__all__ = ["REQUEST_ID_HEADER", "RequestIdMiddleware", "principal_ctx_var", "request_id_ctx_var"]
