import asyncio
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Awaitable

import httpx

from ragchat.config.settings import settings
from ragchat.container import configure_container, container
from ragchat.core.exceptions import RagChatError
from ragchat.core.models.chat import ChatMessage, ChatRequest
from ragchat.core.services.background_indexer import BackgroundIndexer
from ragchat.core.services.chat_service import ChatService
from ragchat.core.services.rag_service import RagService

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)

USAGE = """Usage: python -m ragchat.presentation.cli <command>
Commands:
  index <path> [mimetype]                 index a document
  search <query> [file_id]                search indexed documents
  delete <file_id>                        remove a document's index
  stats                                   show indexed chunk count
  chat <provider> <model> <message> [--rag]
  check-custom                            check the custom LLM server"""


def check_custom_server() -> bool:
    """Check the custom OpenAI-compatible server answers.

    Returns:
        True if server reachable, False otherwise.
    """
    if not settings.custom_server_url:
        logger.error("CUSTOM_SERVER_URL is not set")
        return False

    base_url = settings.custom_server_url.rstrip("/")
    try:
        resp = httpx.get(f"{base_url}/v1/models", timeout=5)
    except httpx.HTTPError as e:
        logger.error(f"Custom server not reachable: {e}")
        return False

    if resp.status_code != 200:
        logger.error(f"Custom server returned HTTP {resp.status_code}")
        return False

    models = [m.get("id") for m in resp.json().get("data", [])]
    logger.info(f"Custom server models: {', '.join(filter(None, models)) or 'none'}")
    return True


async def cmd_index(path: str, mimetype: str | None = None) -> None:
    """Index command - index one file in the background and wait for it."""
    file_path = Path(path)
    if not file_path.exists():
        logger.error(f"File not found: {file_path}")
        sys.exit(1)

    mimetype = mimetype or mimetypes.guess_type(file_path.name)[0] or "text/plain"
    indexer = container.resolve(BackgroundIndexer)
    task = indexer.schedule(file_path.stem, file_path, mimetype, file_path.name)
    if task is None:
        logger.warning("RAG is disabled, nothing indexed")
        return
    await indexer.drain()

    if task.cancelled() or task.exception() is not None:
        sys.exit(1)
    stats = await container.resolve(RagService).get_stats()
    logger.info(f"Indexed {file_path.name}; total chunks: {stats['totalDocuments']}")


async def cmd_search(query: str, file_id: str | None = None) -> None:
    """Search command - print matching chunks."""
    rag = container.resolve(RagService)
    results = await rag.search_documents(query, file_id=file_id)
    if not results:
        print("No results")
    for i, r in enumerate(results, 1):
        print(f"[{i}] {r.source} (similarity {r.similarity:.3f})")
        print(r.content)
        print("---")


async def cmd_delete(file_id: str) -> None:
    await container.resolve(RagService).delete_file_index(file_id)


async def cmd_stats() -> None:
    stats = await container.resolve(RagService).get_stats()
    print(f"Total chunks: {stats['totalDocuments']}")


async def cmd_chat(provider: str, model: str, message: str, use_rag: bool) -> None:
    """Chat command - single turn."""
    chat = container.resolve(ChatService)
    response = await chat.send_message(
        ChatRequest(
            provider=provider,
            model=model,
            messages=[ChatMessage(role="user", content=message)],
            use_rag=use_rag,
        )
    )
    print(response.content)
    if response.stats:
        print(f"\n[{response.stats.model}] tokens: {response.stats.total_tokens}")
    for source in response.sources:
        print(f"source: {source.document} ({source.similarity:.3f})")


async def run(command: Awaitable[None]) -> None:
    """Run one command, then close the connections it opened."""
    try:
        await command
    finally:
        await container.aclose()


def main():
    """CLI entry point."""
    if len(sys.argv) < 2:
        print(USAGE)
        sys.exit(1)

    command, args = sys.argv[1], sys.argv[2:]

    if command == "check-custom":
        sys.exit(0 if check_custom_server() else 1)

    configure_container(settings)

    try:
        if command == "index" and args:
            asyncio.run(run(cmd_index(*args[:2])))
        elif command == "search" and args:
            asyncio.run(run(cmd_search(*args[:2])))
        elif command == "delete" and len(args) == 1:
            asyncio.run(run(cmd_delete(args[0])))
        elif command == "stats":
            asyncio.run(run(cmd_stats()))
        elif command == "chat" and len(args) >= 3:
            asyncio.run(run(cmd_chat(args[0], args[1], args[2], "--rag" in args[3:])))
        else:
            print(f"Unknown command: {command}")
            print(USAGE)
            sys.exit(1)
    except RagChatError as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
