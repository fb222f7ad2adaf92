"""CLI interface for the textbook QA system."""

import argparse
import logging
import sys

from textbook_qa import generator, pipeline
from textbook_qa import retrieval as rt
from textbook_qa.chunker import chunk_pages
from textbook_qa.config import AppConfig
from textbook_qa.errors import ProcessingError
from textbook_qa.loader import load_pages
from textbook_qa.models import QuestionRequest
from textbook_qa.store import get_store


def _setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def ingest(file_path: str, document_id: str, config: AppConfig | None = None) -> None:
    """Index one textbook file under *document_id*.

    Loads the file page by page, splits the pages into chunks and stores
    them in ChromaDB. Passages previously indexed for the same document id
    are removed first.

    Args:
        file_path: Path to a ``.pdf``, ``.txt`` or ``.md`` textbook.
        document_id: Identifier learners will ask questions against.
        config: Application configuration. Uses defaults if not provided.
    """
    cfg = config or AppConfig()

    print(f"\n📂 Loading textbook: {file_path}")
    pages = load_pages(file_path)

    if not pages:
        print("No extractable text found in the textbook.")
        return

    print(f"\n✂️  Chunking {len(pages)} page(s)...")
    chunks = chunk_pages(pages, document_id, cfg.chunk)
    print(f"  Created {len(chunks)} chunks")

    print("\n💾 Storing in ChromaDB...")
    client = rt.get_client(cfg.retrieval)
    collection = rt.get_or_create_collection(client, cfg.retrieval)
    rt.delete_document(collection, document_id)
    added = rt.add_chunks(collection, chunks, cfg.retrieval.batch_size)

    print(f"\n✅ Ingestion complete! ({added} chunks stored for '{document_id}')")


def ask(
    document_id: str,
    user_id: str,
    session_id: str | None = None,
    config: AppConfig | None = None,
) -> None:
    """Start an interactive question session about one textbook.

    Every question continues the same chat session; the first question
    creates it unless *session_id* is given. Exits on 'quit', 'exit', 'q',
    EOF, or KeyboardInterrupt.
    """
    cfg = config or AppConfig()

    client = rt.get_client(cfg.retrieval)
    collection = rt.get_or_create_collection(client, cfg.retrieval)

    if collection.count() == 0:
        print("No textbooks in the vector store. Run ingestion first:")
        print("  python -m textbook_qa ingest --file book.pdf --document-id my-book")
        return

    store = get_store(cfg.store)
    llm_client = generator.get_client(cfg.llm)

    print(f"\n📚 Textbook QA ({document_id})")
    print(f"🤖 Using Ollama model: {cfg.llm.model}")
    print("\nType your question (or 'quit' to exit):\n")

    while True:
        try:
            question = input("You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nGoodbye!")
            break

        if not question:
            continue
        if question.lower() in ("quit", "exit", "q"):
            print("Goodbye!")
            break

        request = QuestionRequest(
            question=question,
            document_id=document_id,
            user_id=user_id,
            session_id=session_id,
        )
        try:
            response = pipeline.process_question(
                request, collection, store, config=cfg, client=llm_client
            )
        except ProcessingError as exc:
            print(f"\n⚠️  {exc}\n")
            continue

        session_id = response.session_id
        print(f"\nAssistant:\n{response.answer}\n")
        pages = sorted({s.page_number for s in response.sources})
        if pages:
            print(f"  (pages {', '.join(map(str, pages))}; confidence {response.confidence:.2f})\n")


def history(session_id: str, config: AppConfig | None = None) -> None:
    """Print the messages of a chat session, oldest first."""
    cfg = config or AppConfig()
    messages = pipeline.get_chat_history(get_store(cfg.store), session_id)

    if not messages:
        print(f"No messages for session {session_id}.")
        return

    for message in messages:
        stamp = message.created_at.strftime("%Y-%m-%d %H:%M")
        print(f"[{stamp}] {message.role.value}: {message.content}")


def sessions(user_id: str, document_id: str, config: AppConfig | None = None) -> None:
    """Print a user's chat sessions for one textbook, newest first."""
    cfg = config or AppConfig()
    found = pipeline.get_user_chat_sessions(get_store(cfg.store), user_id, document_id)

    if not found:
        print(f"No sessions for user {user_id} on '{document_id}'.")
        return

    for session in found:
        stamp = session.updated_at.strftime("%Y-%m-%d %H:%M")
        print(f"{session.id}  {stamp}  {session.title}")


def serve(config: AppConfig | None = None) -> None:
    """Run the web API with uvicorn."""
    import uvicorn

    cfg = config or AppConfig()
    uvicorn.run("textbook_qa.web:app", host=cfg.host, port=cfg.port)


def main() -> None:
    """CLI entry point — parse arguments and dispatch to a subcommand."""
    parser = argparse.ArgumentParser(
        description="Textbook QA — grounded answers from your textbook",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ingest
    ingest_p = subparsers.add_parser("ingest", help="Index a textbook file")
    ingest_p.add_argument("--file", type=str, required=True, help="Textbook path")
    ingest_p.add_argument(
        "--document-id", type=str, required=True, help="Textbook identifier"
    )

    # ask
    ask_p = subparsers.add_parser("ask", help="Ask questions about a textbook")
    ask_p.add_argument("--document-id", type=str, required=True)
    ask_p.add_argument("--user-id", type=str, required=True)
    ask_p.add_argument("--session-id", type=str, default=None)
    ask_p.add_argument("--model", type=str, default=None, help="Ollama model name")

    # history
    history_p = subparsers.add_parser("history", help="Show a session's messages")
    history_p.add_argument("--session-id", type=str, required=True)

    # sessions
    sessions_p = subparsers.add_parser("sessions", help="List a user's sessions")
    sessions_p.add_argument("--user-id", type=str, required=True)
    sessions_p.add_argument("--document-id", type=str, required=True)

    # serve
    subparsers.add_parser("serve", help="Run the web API")

    args = parser.parse_args()
    _setup_logging(args.verbose)

    if args.command == "ingest":
        ingest(args.file, args.document_id)
    elif args.command == "ask":
        cfg = AppConfig()
        if args.model:
            cfg = cfg.model_copy(
                update={"llm": cfg.llm.model_copy(update={"model": args.model})}
            )
        ask(args.document_id, args.user_id, args.session_id, cfg)
    elif args.command == "history":
        history(args.session_id)
    elif args.command == "sessions":
        sessions(args.user_id, args.document_id)
    elif args.command == "serve":
        serve()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
