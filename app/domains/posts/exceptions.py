class PostError(Exception):
    """Базовая ошибка домена постов"""

    status_code = 500
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PostError):
    """Некорректные входные данные"""

    status_code = 400
    code = "validation_error"


class InvalidTime(ValidationError):
    """Время публикации не в будущем"""

    code = "invalid_time"


class NotFound(PostError):
    status_code = 404
    code = "not_found"


class Forbidden(PostError):
    status_code = 403
    code = "forbidden"


class InvalidState(PostError):
    """Переход недопустим из текущего состояния"""

    status_code = 400
    code = "invalid_state"


class SlugConflict(PostError):
    """Не удалось подобрать уникальный slug за отведенное число попыток"""

    status_code = 409
    code = "conflict"


class Transient(PostError):
    """Хранилище недоступно"""

    status_code = 503
    code = "transient"
