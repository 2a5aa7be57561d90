"""
Excepciones de dominio compartidas por los servicios.

Los servicios no conocen HTTP: lanzan estas excepciones y los handlers
registrados en ``gymhub.main`` las traducen al código de estado adecuado.
"""


class GymHubError(Exception):
    """Base de los errores de dominio."""

    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(GymHubError):
    """Recurso inexistente o perteneciente a otro gimnasio."""

    status_code = 404


class ValidationError(GymHubError):
    """Datos de entrada inválidos para la operación solicitada."""

    status_code = 400


class DuplicateError(ValidationError):
    """El recurso ya existe (p.ej. una ocurrencia en la misma fecha)."""


class PermissionDeniedError(GymHubError):
    """El rol del usuario no permite la operación."""

    status_code = 403
