import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx
import yaml
from langchain.embeddings.base import init_embeddings
from langchain_community.embeddings.spacy_embeddings import SpacyEmbeddings
from langchain_core.embeddings import Embeddings

from .errors import (
    CountMismatchError,
    DimensionMismatchError,
    ProviderError,
    ProviderPermanentError,
    ProviderTransientError,
    ValidationError,
    VectorStoreError,
)
from .retry import RetryPolicy, call_with_retry
from .schemas import DEFAULT_VECTOR_DIMENSION


def load_config(config_path: Path | str) -> Dict[str, Any]:
    """Load configuration from a given YAML file path.

    Args:
        config_path: Explicit path to the configuration file.

    Returns:
        Parsed configuration dictionary.

    Raises:
        FileNotFoundError: If the configuration file is not found.
        ValueError: If there is an error parsing the YAML file.
    """
    path = Path(config_path)

    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise FileNotFoundError(f"Configuration file not found: {path}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML file '{path}': {e}") from e

    return data or {}


CONFIG_FILE_PATH = Path(__file__).parent / "config.yaml"

logger = logging.getLogger(__name__)


def _status_code(err: BaseException) -> Optional[int]:
    status = getattr(err, "status_code", None)
    if status is None:
        status = getattr(getattr(err, "response", None), "status_code", None)
    return status if isinstance(status, int) else None


def classify_provider_error(err: Exception) -> ProviderError:
    """Map a provider SDK exception onto the transient/permanent split.

    Walks the ``__cause__``/``__context__`` chain because SDKs usually wrap
    the transport error (e.g. an ``httpx.ConnectError``) in their own type.
    """
    seen = set()
    current: Optional[BaseException] = err
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, (httpx.TransportError, ConnectionError, TimeoutError)):
            return ProviderTransientError(f"Embedding provider unreachable: {err}")
        status = _status_code(current)
        if status is not None:
            if status >= 500 or status == 429:
                return ProviderTransientError(
                    f"Embedding provider returned HTTP {status}: {err}", status_code=status
                )
            return ProviderPermanentError(
                f"Embedding provider rejected the request (HTTP {status}): {err}",
                status_code=status,
            )
        current = current.__cause__ or current.__context__
    return ProviderPermanentError(f"Embedding provider failed: {err}")


class Embedder:
    """Generic embedding wrapper backed by LangChain's init_embeddings.

    Credentials are read from environment as required by the chosen provider
    (e.g., OPENAI_API_KEY, COHERE_API_KEY, etc.).

    Every provider call runs under a RetryPolicy: transient failures
    (network, timeouts, 5xx/429) are retried with exponential backoff,
    anything else fails immediately.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        *,
        provider: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None,
        embeddings: Optional[Embeddings] = None,
        dimension: Optional[int] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep

        # Start from explicit config dict if provided, else load from vectorstore/config.yaml
        if config is not None:
            cfg: Dict[str, Any] = dict(config)
        elif embeddings is not None:
            cfg = {}
        else:
            try:
                cfg = load_config(CONFIG_FILE_PATH)
            except FileNotFoundError:
                cfg = {}
        self._cfg = cfg

        self.dim = self._resolve_dim(dimension, cfg)
        logger.info("Using embedding dimension: %s", self.dim)

        if embeddings is not None:
            self._emb = embeddings
            return

        embedding_cfg = dict(cfg.get("embedding_model") or {})
        # Override with explicit args if provided
        if provider is not None:
            embedding_cfg["provider"] = provider
        if model is not None:
            embedding_cfg["model"] = model

        if not embedding_cfg.get("provider") or not embedding_cfg.get("model"):
            raise ValueError(
                "Embedding configuration missing 'provider' and/or 'model'. "
                "Set them in src/solr_vectorstore/vectorstore/config.yaml under 'embedding_model', "
                "or pass them to Embedder()."
            )

        provider_name = embedding_cfg.get("provider", "").lower()
        if provider_name == "spacy":
            model_name = embedding_cfg.get("model", "en_core_web_lg")
            logger.info("Initializing spaCy embeddings with model '%s'", model_name)
            self._emb = SpacyEmbeddings(model_name=model_name)
        else:
            logger.info(
                "Initializing embeddings via init_embeddings provider=%s model=%s",
                embedding_cfg.get("provider"),
                embedding_cfg.get("model"),
            )
            self._emb = init_embeddings(**embedding_cfg)

    @staticmethod
    def _resolve_dim(dimension: Optional[int], cfg: Dict[str, Any]) -> int:
        raw = dimension if dimension is not None else (cfg.get("dim") or cfg.get("dimensions"))
        if raw is None:
            return DEFAULT_VECTOR_DIMENSION
        try:
            value = int(raw)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid embedding dimension: {raw!r}") from e
        if value <= 0:
            raise ValueError(f"Embedding dimension must be positive, got {value}")
        return value

    def _call(self, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return fn(*args)
        except VectorStoreError:
            raise
        except Exception as e:
            raise classify_provider_error(e) from e

    def _check_dim(self, vec: List[float]) -> List[float]:
        if len(vec) != self.dim:
            raise DimensionMismatchError(self.dim, len(vec))
        return vec

    def embed_query(self, text: str) -> List[float]:
        """Embed a single string.

        Raises:
            ValidationError: text is empty or blank.
            ProviderTransientError: still failing after the retry policy ran out.
            ProviderPermanentError: provider rejected the request.
            DimensionMismatchError: provider vector has the wrong length.
        """
        if not text or not text.strip():
            raise ValidationError("Text to embed cannot be null or empty")

        logger.debug("Generating embedding for text (length: %d)", len(text))
        vec = call_with_retry(
            lambda: self._call(self._emb.embed_query, text),
            self.retry_policy,
            operation_name="embed_query",
            sleep=self._sleep,
        )
        vec = self._check_dim([float(v) for v in vec])
        logger.debug("Successfully generated embedding with %d dimensions", len(vec))
        return vec

    def embed_documents(self, texts: Iterable[str]) -> List[List[float]]:
        """Embed a batch with a single provider call."""
        texts = list(texts)
        if not texts:
            return []
        for i, text in enumerate(texts):
            if not text or not text.strip():
                raise ValidationError(f"texts[{i}] is empty")

        vecs = call_with_retry(
            lambda: self._call(self._emb.embed_documents, texts),
            self.retry_policy,
            operation_name="embed_documents",
            sleep=self._sleep,
        )
        if vecs is None or len(vecs) != len(texts):
            raise CountMismatchError(len(texts), 0 if vecs is None else len(vecs))
        return [self._check_dim([float(v) for v in vec]) for vec in vecs]
