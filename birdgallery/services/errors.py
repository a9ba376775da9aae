class ResolutionError(Exception):
    """Fallo de un paso de resolución de imágenes; nunca sale del resolver"""

class NetworkFailure(ResolutionError):
    """Petición rechazada, timeout o respuesta no 2xx"""

class ParseFailure(ResolutionError):
    """JSON inválido o con una forma inesperada"""

class BirdDataError(Exception):
    """No se pudieron cargar los datos estáticos de aves"""
