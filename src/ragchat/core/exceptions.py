"""Exception hierarchy for the RAG chat backend."""


class RagChatError(Exception):
    """Base class for all ragchat errors."""


class ConfigurationError(RagChatError):
    """Missing credentials or invalid settings."""


class UnsupportedProviderError(ConfigurationError):
    """Provider name outside the supported set."""

    def __init__(self, kind: str, name: str, supported: list[str]):
        self.kind = kind
        self.name = name
        self.supported = supported
        super().__init__(
            f"Unsupported {kind} provider: {name!r} "
            f"(expected one of: {', '.join(supported)})"
        )


class EmbeddingError(RagChatError):
    """Embedding provider failed or returned a malformed response."""


class DocumentProcessingError(RagChatError):
    """Text could not be extracted from a supported document."""


class UnsupportedFileTypeError(DocumentProcessingError):
    """No loader accepts the given MIME type."""

    def __init__(self, mimetype: str):
        self.mimetype = mimetype
        super().__init__(f"Unsupported file type: {mimetype}")


class VectorStoreError(RagChatError):
    """Vector store rejected a request."""


class VectorStoreUnavailableError(VectorStoreError):
    """Vector store could not be reached or initialized."""


class IndexingError(RagChatError):
    """An indexing run was aborted."""


class ProviderError(RagChatError):
    """Chat provider failed to generate an answer."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider} API error: {message}")
