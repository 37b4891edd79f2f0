"""
Main entry point for the Bilingual Reader.

Aligns article text files into sentence cards, reads through them in the
terminal, or serves the web API.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List

from .alignment import SentenceAligner, get_sentence_stats
from .errors import (
    ReaderError,
    StateError,
    SyncError,
    ValidationError,
    error_handler
)
from .session import ArticleStore, JsonSessionStore, SessionEngine


def setup_logging(verbose: bool = False):
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )


def read_paragraphs(path: Path) -> List[str]:
    """Read a text file as a list of non-empty paragraphs, one per line."""
    with open(path, 'r', encoding='utf-8') as f:
        return [line.strip() for line in f if line.strip()]


def run_align(args) -> int:
    """Align two text files and print the processed article as JSON."""
    logger = logging.getLogger(__name__)

    for path in (args.source_file, args.target_file):
        if not path.exists():
            print(f"❌ File not found: {path}")
            return 1

    processed = SentenceAligner().align(
        read_paragraphs(args.source_file),
        read_paragraphs(args.target_file)
    )

    if processed.sentence_count == 0:
        error = error_handler.handle_empty_article(args.article_id)
        error_handler.add_error(error)
        for action in error.suggested_actions:
            print(f"   • {action}")
        return 1

    if args.save:
        article_id = args.article_id or args.source_file.stem
        ArticleStore(storage_dir=args.article_dir).save(article_id, processed)
        logger.info(f"Saved article {article_id}")

    output = processed.to_dict()
    output['stats'] = get_sentence_stats(processed.sentences).to_dict()
    print(json.dumps(output, ensure_ascii=False, indent=2))
    return 0


READ_COMMANDS = """Commands:
  n  complete card and go to the next one
  p  previous card
  f  flip (show the English translation)
  r  replay audio
  s  change settings, e.g. "s ttsSpeed=1.5 autoPlayTTS=false"
  y  retry saving progress
  q  save and quit"""


def parse_setting_assignments(assignments: List[str]) -> dict:
    """Parse key=value words into a settings payload."""
    settings = {}
    for assignment in assignments:
        key, _, raw_value = assignment.partition('=')
        if raw_value.lower() in ('true', 'false'):
            value = raw_value.lower() == 'true'
        else:
            try:
                value = float(raw_value)
            except ValueError:
                value = raw_value
        settings[key] = value
    return settings


def print_card(engine: SessionEngine) -> None:
    """Print the current card and progress."""
    view = engine.view()
    progress = view['progress']
    print(f"\n[{progress['completedCards']}/{progress['totalCards']} - {progress['percentage']}%]"
          f" Card {view['currentCardIndex'] + 1}")
    print(f"  {view['currentCard']['chinese']}")
    if view['isFlipped'] or view['settings']['showTranslation']:
        print(f"  {view['currentCard']['english']}")


def run_read(args) -> int:
    """Read through a saved article card by card in the terminal."""
    logger = logging.getLogger(__name__)
    article_store = ArticleStore(storage_dir=args.article_dir)
    session_store = JsonSessionStore(storage_dir=args.session_dir)

    try:
        article = article_store.get(args.article_id)
        if args.session_id:
            engine = SessionEngine.resume(session_store, args.session_id, article)
        else:
            engine = SessionEngine.start(session_store, article, args.article_id,
                                         resume_existing=not args.restart)
    except ReaderError as e:
        print(f"❌ {e.processing_error.message}: {e.processing_error.details}")
        return 1

    print(f"📖 Session {engine.session_id} ({article.difficulty.value}, ~{article.estimated_minutes} min)")
    print(READ_COMMANDS)

    while not engine.is_completed:
        print_card(engine)
        stdin_closed = False
        try:
            words = input("> ").strip().split()
        except EOFError:
            stdin_closed = True
            words = ['q']
        command = words[0].lower() if words else 'n'

        try:
            if command == 'n':
                engine.complete_card()
            elif command == 'p':
                engine.previous_card()
            elif command == 'f':
                engine.flip()
            elif command == 'r':
                engine.play_current_card()
            elif command == 's':
                engine.update_settings(parse_setting_assignments(words[1:]))
            elif command == 'y':
                engine.retry_sync()
                print("✅ Progress saved")
            elif command == 'q':
                engine.exit()
                print(f"💾 Progress saved. Resume with: read {args.article_id}")
                return 0
            else:
                print(READ_COMMANDS)
        except StateError as e:
            print(f"⚠️  {e.processing_error.message}")
        except ValidationError as e:
            print(f"⚠️  {e.processing_error.details}")
        except SyncError as e:
            logger.debug(f"Sync failed: {e.processing_error.details}")
            if stdin_closed:
                print("⚠️  Progress could not be saved.")
                return 1
            print("⚠️  Progress could not be saved. Type 'y' to retry.")

    if engine.has_pending_sync:
        print("⚠️  Some progress is not saved yet.")
        try:
            engine.retry_sync()
        except SyncError:
            return 1

    progress = engine.progress
    print(f"\n🎉 Finished {progress.total_cards} cards, {len(engine.session.cards_flipped)} flipped")
    return 0


def run_serve(args) -> int:
    """Run the web API."""
    from .web.run import main as run_server
    run_server(port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Align bilingual articles into sentence cards and read through them",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s align chinese.txt english.txt
  %(prog)s align chinese.txt english.txt --save --article-id lesson-1
  %(prog)s read lesson-1
  %(prog)s serve --port 3000
        """
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    subparsers = parser.add_subparsers(dest="command")

    align_parser = subparsers.add_parser("align", help="Align two text files into sentence cards")
    align_parser.add_argument("source_file", type=Path, help="Chinese text, one paragraph per line")
    align_parser.add_argument("target_file", type=Path, help="English text, one paragraph per line")
    align_parser.add_argument("--article-id", default=None, help="Id to save the article under (default: source file name)")
    align_parser.add_argument("--save", action="store_true", help="Save the processed article for reading")
    align_parser.add_argument("--article-dir", default=None, help="Directory for processed articles")
    align_parser.set_defaults(handler=run_align)

    read_parser = subparsers.add_parser("read", help="Read a saved article in the terminal")
    read_parser.add_argument("article_id", help="Id of a saved article")
    read_parser.add_argument("--session-id", default=None, help="Resume a specific session")
    read_parser.add_argument("--restart", action="store_true", help="Start a new session instead of resuming")
    read_parser.add_argument("--article-dir", default=None, help="Directory for processed articles")
    read_parser.add_argument("--session-dir", default=None, help="Directory for reading sessions")
    read_parser.set_defaults(handler=run_read)

    serve_parser = subparsers.add_parser("serve", help="Run the web API")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (default: FLASK_PORT or 3000)")
    serve_parser.set_defaults(handler=run_serve)

    return parser


def main(argv=None) -> int:
    """Command line entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.verbose)
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
