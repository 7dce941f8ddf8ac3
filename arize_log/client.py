"""HTTP client that logs prediction records to the Arize ingestion API."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Mapping, Optional

import requests  # pylint: disable=import-error

from . import __version__
from .builder import Clock, build_record, utc_now
from .codec import encode_record
from .config import DEFAULT_CONFIG, SDK_NAME, Config
from .errors import RequestConstructionError, RequestExecutionError
from .models import Embedding, Record, Response


logger = logging.getLogger(__name__)

LOG_PATH = "/v1/log"


class Client:
    """
    Client for the Arize record ingestion endpoint.

    Host, credentials and headers are fixed when the client is created. Each
    `log` call validates its arguments, builds one record and sends it in a
    single POST; nothing is retried.

    Usage:
        client = new_client("space-key", "api-key")
        resp = client.log("my-model", "pred-1", prediction="cat", actual="dog")
        if resp.status_code != 200:
            ...
    """

    # pylint: disable=too-many-arguments
    def __init__(
        self,
        space_key: str,
        api_key: str,
        config: Optional[Config] = None,
        session: Optional[requests.Session] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.config = config or DEFAULT_CONFIG
        self.space_key = space_key
        self.session = session if session is not None else requests.Session()
        self.clock = clock or utc_now
        self.headers: Mapping[str, str] = MappingProxyType(
            {
                "authorization": api_key,
                "Grpc-Metadata-space": space_key,
                "Grpc-Metadata-sdk-version": __version__,
                "Grpc-Metadata-sdk": SDK_NAME,
                "Content-Type": "application/json",
                "User-Agent": self.config.user_agent,
            }
        )
        logger.debug("Initialized Client with host=%s", self.config.host)

    def _url(self, path: str) -> str:
        return f"{self.config.host.rstrip('/')}/{path.lstrip('/')}"

    # pylint: disable=too-many-arguments
    def log(
        self,
        model_id: str,
        prediction_id: str,
        *,
        model_version: Optional[str] = None,
        features: Optional[Mapping[str, Any]] = None,
        tags: Optional[Mapping[str, Any]] = None,
        shap_values: Optional[Mapping[str, float]] = None,
        prediction: Any = None,
        actual: Any = None,
        timestamp: Any = None,
        embedding_features: Optional[Mapping[str, Embedding]] = None,
        timeout: Optional[float] = None,
    ) -> Response:
        """
        Build a record from the arguments and send it.

        Args:
            model_id: Model identifier, must be non-empty.
            prediction_id: Identifier joining predictions and actuals, non-empty.
            model_version: Optional model version string.
            features: Feature values (str, bool, signed int, float).
            tags: Tag values, same types as features; shared by the
                prediction and actual sub-records.
            shap_values: Feature importance scores.
            prediction: Predicted label (str, bool, number or ScoreCategorical).
            actual: Ground-truth label, same kind as `prediction`.
            timestamp: datetime or Unix seconds; defaults to the client clock.
            embedding_features: Embedding features, merged into `features`.
            timeout: Seconds to wait for this request; defaults to
                `Config.timeout`.

        Returns:
            The API response. Non-2xx statuses are returned, not raised.

        Raises:
            ValidationError (or a subclass) before any request is made.
            RequestConstructionError / RequestExecutionError on transport failure.
        """
        record = build_record(
            self.space_key,
            model_id,
            prediction_id,
            model_version=model_version,
            features=features,
            tags=tags,
            shap_values=shap_values,
            prediction=prediction,
            actual=actual,
            timestamp=timestamp,
            embedding_features=embedding_features,
            clock=self.clock,
        )
        return self.send(record, timeout=timeout)

    def send(self, record: Record, timeout: Optional[float] = None) -> Response:
        """Encode `record` and POST it to the log endpoint.

        A `timeout` given here overrides `Config.timeout` for this request only.
        """
        url = self._url(LOG_PATH)
        try:
            body = encode_record(record)
            request = requests.Request("POST", url, headers=dict(self.headers), data=body)
            prepared = self.session.prepare_request(request)
        except (TypeError, ValueError, requests.RequestException) as exc:
            raise RequestConstructionError(
                f"error creating new request to arize: {exc}"
            ) from exc

        logger.debug(
            "Sending record model_id=%s prediction_id=%s to %s (%d bytes)",
            record.model_id,
            record.prediction_id,
            url,
            len(body),
        )
        try:
            resp = self.session.send(
                prepared,
                timeout=self.config.timeout if timeout is None else timeout,
                verify=self.config.verify_ssl,
            )
        except requests.RequestException as exc:
            logger.error("HTTP request to %s failed: %s", url, exc)
            raise RequestExecutionError(
                f"HTTP request failure on request to arize: {exc}"
            ) from exc

        if not 200 <= resp.status_code < 300:
            logger.warning("Log request returned %s: %s", resp.status_code, resp.text)
        return Response(status_code=resp.status_code, body=resp.text)

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def new_client(
    space_key: str,
    api_key: str,
    config: Optional[Config] = None,
    session: Optional[requests.Session] = None,
    clock: Optional[Clock] = None,
) -> Client:
    """Factory to create a Client with the given config or defaults."""
    return Client(space_key, api_key, config=config, session=session, clock=clock)


__all__ = ["Client", "LOG_PATH", "new_client"]
