"""HTTP client for an external inference server hosting trained pose/segmentation models."""

import io
import logging

import httpx
import numpy as np

logger = logging.getLogger(__name__)


class RemoteInferenceClient:
    """Client for a model server exposing ``/v1/pose`` and ``/v1/segment``.

    Tensors travel as ``.npy`` bodies. Pose answers with JSON
    ``{"keypoints": [...51 floats...]}``; segmentation answers with a ``.npy``
    mask body (or 204 when no body region was found).
    """

    def __init__(self, base_url: str, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(base_url=self.base_url, timeout=self.timeout)
        return self._client

    def predict_keypoints(self, batch: np.ndarray) -> np.ndarray | None:
        response = self._post("/v1/pose", batch)
        keypoints = response.json().get("keypoints")
        if not keypoints:
            return None
        return np.asarray(keypoints, dtype=np.float32)

    def predict_mask(self, batch: np.ndarray) -> np.ndarray | None:
        response = self._post("/v1/segment", batch)
        if response.status_code == 204 or not response.content:
            return None
        return np.load(io.BytesIO(response.content), allow_pickle=False)

    def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            self._client.close()

    def _post(self, path: str, batch: np.ndarray) -> httpx.Response:
        buffer = io.BytesIO()
        np.save(buffer, batch.astype(np.float32), allow_pickle=False)
        response = self.client.post(
            path,
            content=buffer.getvalue(),
            headers={"Content-Type": "application/octet-stream"},
        )
        response.raise_for_status()
        logger.debug("Inference %s -> %d", path, response.status_code)
        return response
