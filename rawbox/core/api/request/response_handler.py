"""Response handler for API responses."""
from typing import Any, Dict, List

from ..async_client import TransportResponse
from ..errors import ErrorKind, RawBoxError


class ResponseHandler:
    """Decodes successful API responses."""

    @staticmethod
    def parse_json(response: TransportResponse) -> Any:
        """Parses JSON response."""
        try:
            return response.json()
        except (ValueError, UnicodeDecodeError):
            raise RawBoxError(
                ErrorKind.UNKNOWN,
                "Empty or invalid response",
                http_status=response.status
            )

    @staticmethod
    def parse_object(response: TransportResponse) -> Dict[str, Any]:
        """Parses a JSON object response."""
        data = ResponseHandler.parse_json(response)
        if not isinstance(data, dict):
            raise RawBoxError(
                ErrorKind.UNKNOWN,
                f"Expected a JSON object, got {type(data).__name__}",
                http_status=response.status
            )
        return data

    @staticmethod
    def get_list(data: Dict[str, Any], key: str) -> List[Any]:
        """List stored under key; missing or null means empty."""
        value = data.get(key)
        if value is None:
            return []
        if not isinstance(value, list):
            raise RawBoxError(ErrorKind.UNKNOWN, f"Field '{key}' is not a list")
        return value
