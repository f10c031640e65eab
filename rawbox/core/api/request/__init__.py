"""Request pipeline: request description, stages and response decoding."""
from .request_builder import RequestSpec, RetryOptions, RequestBuilder
from .response_handler import ResponseHandler
from .stages import Stage, CredentialStage, LoggingStage
from .request_handler import RequestPipeline

__all__ = [
    'RequestSpec',
    'RetryOptions',
    'RequestBuilder',
    'ResponseHandler',
    'Stage',
    'CredentialStage',
    'LoggingStage',
    'RequestPipeline',
]
