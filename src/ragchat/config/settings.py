from pydantic_settings import BaseSettings


class Settings(BaseSettings):

    rag_enabled: bool = False
    rag_top_k: int = 5
    chunk_size: int = 1000
    chunk_overlap: int = 200

    # Embeddings: gemini | openai | huggingface
    embedding_provider: str = "gemini"
    embedding_batch_size: int = 100
    fallback_embedding_dimension: int = 768

    gemini_api_key: str | None = None
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_embedding_model: str = "embedding-001"

    openai_api_key: str | None = None
    openai_base_url: str | None = None
    openai_embedding_model: str = "text-embedding-3-small"

    huggingface_api_key: str | None = None
    huggingface_base_url: str = "https://api-inference.huggingface.co"
    huggingface_embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    huggingface_loading_retry_delay: float = 10.0

    # Vector store: remote Chroma when chroma_host is set, local path otherwise
    vector_db_path: str = "./vector_db"
    chroma_host: str | None = None
    chroma_port: int = 8000
    chroma_collection: str = "documents"

    custom_server_url: str | None = None
    custom_model: str = "qwen2:0.5b"

    llm_history_limit: int = 10
    llm_timeout: float = 30.0

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
