import abc
import typing


class HydraClientException(Exception, metaclass=abc.ABCMeta):
    @property
    @abc.abstractmethod
    def message(self) -> str:
        ...  # pragma: nocover

    def __str__(self):
        return self.message


class InvalidDeclarationError(HydraClientException):
    _message: str

    @property
    def message(self):
        return self._message

    def __init__(self, message: str):
        super().__init__(message)
        self._message = message


class ConfigurationError(HydraClientException, metaclass=abc.ABCMeta):
    pass


class ResourceNotRegisteredError(ConfigurationError):
    class_: type

    @property
    def message(self):
        return f"no metadata registered for {self.class_.__name__}"

    def __init__(self, class_: type):
        super().__init__(class_)
        self.class_ = class_


class UnknownReferenceError(ConfigurationError):
    reference: str

    @property
    def message(self):
        return f"no resource class known for reference {self.reference!r}"

    def __init__(self, reference: str):
        super().__init__(reference)
        self.reference = reference


class PreconditionError(HydraClientException, metaclass=abc.ABCMeta):
    pass


class UnregisteredObjectError(PreconditionError):
    target: typing.Any

    @property
    def message(self):
        return f"{type(self.target).__name__} object must be registered in the client before update"

    def __init__(self, target: typing.Any):
        super().__init__(target)
        self.target = target


class UndeclaredFieldError(PreconditionError, AttributeError):
    class_: type
    name: str

    @property
    def message(self):
        return f'field "{self.name}" is not declared in {self.class_.__name__}'

    def __init__(self, class_: type, name: str):
        super().__init__(class_, name)
        self.class_ = class_
        self.name = name


class InvalidDeleteArgumentsError(PreconditionError):
    args_: typing.Sequence[typing.Any]

    @property
    def message(self):
        return (
            "delete() requires either a single resource object or a class and an identifier, "
            f"got {len(self.args_)} argument(s)"
        )

    def __init__(self, args_: typing.Sequence[typing.Any]):
        super().__init__(*args_)
        self.args_ = args_


class InvalidFieldValueError(PreconditionError):
    class_: type
    name: str
    actual: typing.Any
    detail: typing.Optional[str]

    @property
    def message(self):
        return f'field "{self.name}" in {self.class_.__name__} cannot hold {self.actual!r}{" (" + self.detail + ")" if self.detail is not None else ""}'

    def __init__(
        self, class_: type, name: str, actual: typing.Any, detail: typing.Optional[str] = None
    ):
        super().__init__(class_, name, actual)
        self.class_ = class_
        self.name = name
        self.actual = actual
        self.detail = detail


class UnboundObjectError(PreconditionError):
    target: typing.Any
    operation: str

    @property
    def message(self):
        return f"{type(self.target).__name__} object is not attached to a client ({self.operation})"

    def __init__(self, target: typing.Any, operation: str):
        super().__init__(target, operation)
        self.target = target
        self.operation = operation


class MissingIdentifierError(PreconditionError):
    target: typing.Any

    @property
    def message(self):
        return f"{type(self.target).__name__} object has no identifier yet"

    def __init__(self, target: typing.Any):
        super().__init__(target)
        self.target = target

class ProtocolError(HydraClientException, metaclass=abc.ABCMeta):
    pass


class NonJsonResponseError(ProtocolError):
    target: str
    content_type: typing.Optional[str]

    @property
    def message(self):
        return f"expected a JSON response from {self.target}, got {self.content_type or 'no content type'}"

    def __init__(self, target: str, content_type: typing.Optional[str]):
        super().__init__(target, content_type)
        self.target = target
        self.content_type = content_type


class UnexpectedDocumentError(ProtocolError):
    document: typing.Any

    @property
    def message(self):
        return "response is neither an object nor a collection"

    def __init__(self, document: typing.Any):
        super().__init__(document)
        self.document = document


class SerializerError(HydraClientException):
    _message: str

    @property
    def message(self):
        return self._message

    def __init__(self, message: str):
        super().__init__(message)
        self._message = message


class TransportError(HydraClientException):
    method: str
    target: str
    detail: str

    @property
    def message(self):
        return f"{self.method} {self.target} failed: {self.detail}"

    def __init__(self, method: str, target: str, detail: str):
        super().__init__(method, target, detail)
        self.method = method
        self.target = target
        self.detail = detail


class HttpError(TransportError):
    status_code: int
    body: bytes

    def __init__(self, method: str, target: str, status_code: int, body: bytes = b""):
        super().__init__(method, target, f"server responded with status {status_code}")
        self.status_code = status_code
        self.body = body

