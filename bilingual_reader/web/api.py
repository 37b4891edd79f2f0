"""API endpoints for article processing and reading sessions."""

import logging
from typing import Any, Dict, Optional

from flask import Blueprint, jsonify, request, current_app

from bilingual_reader.alignment import (
    SentenceAligner,
    validate_sentence_cards,
    find_card_issues,
    get_sentence_stats
)
from bilingual_reader.errors import ReaderError, error_handler
from bilingual_reader.models import ProcessedArticle
from bilingual_reader.session.article_store import ArticleStore
from bilingual_reader.session.session_models import ReadingSession
from bilingual_reader.session.session_store import JsonSessionStore, SessionStore
from bilingual_reader.session.validation import validate_settings, SETTING_FIELDS
from bilingual_reader.web.error_responses import (
    format_error_response,
    missing_json_response,
    session_not_found_response,
    article_not_found_response,
    reader_error_response,
    unexpected_error_response,
    ErrorCode,
    ActionRequired
)

# Create logger
logger = logging.getLogger(__name__)

# Create API blueprint
bp = Blueprint('api', __name__, url_prefix='/api')


@bp.errorhandler(ReaderError)
def handle_reader_error(e):
    """Handle validation, state and storage errors raised by the stores."""
    return reader_error_response(e)


@bp.errorhandler(Exception)
def handle_unexpected_error(e):
    """Handle unexpected errors with proper logging."""
    logger.error(f"Unexpected error: {e}", exc_info=True)

    return unexpected_error_response(
        error_details=str(e),
        include_details=current_app.debug
    )


def get_session_store() -> SessionStore:
    """Session store from the app config, created on first use."""
    store = current_app.config.get('SESSION_STORE')
    if store is None:
        store = JsonSessionStore(storage_dir=current_app.config.get('SESSION_FOLDER'))
        current_app.config['SESSION_STORE'] = store
    return store


def get_article_store() -> ArticleStore:
    """Article store from the app config, created on first use."""
    store = current_app.config.get('ARTICLE_STORE')
    if store is None:
        store = ArticleStore(storage_dir=current_app.config.get('ARTICLE_FOLDER'))
        current_app.config['ARTICLE_STORE'] = store
    return store


def get_json_object() -> Optional[Dict[str, Any]]:
    """Request body if it is a JSON object, else None."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


def missing_fields_response(message: str):
    response = format_error_response(
        error_message=message,
        error_code=ErrorCode.MISSING_FIELDS,
        action_required=ActionRequired.FIX_INPUT
    )
    return jsonify(response), 400


def is_paragraph_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(paragraph, str) for paragraph in value)


def article_payload(article: ProcessedArticle) -> Dict[str, Any]:
    data = article.to_dict()
    data['stats'] = get_sentence_stats(article.sentences).to_dict()
    return data


def session_payload(session: ReadingSession, include_article: bool = False) -> Dict[str, Any]:
    data = session.to_dict()
    data['progress'] = session.progress.to_dict()
    if include_article:
        article = get_article_store().find(session.article_id)
        data['article'] = article.to_dict() if article else None
    return data


@bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'ok',
        'message': 'Bilingual Reader API is running'
    })


@bp.route('/articles/<article_id>/process-sentences', methods=['POST'])
def process_sentences(article_id: str):
    """
    Align an article into sentence cards and store them.

    Expects JSON body:
        {
            "sourceParagraphs": ["第一段。", ...],
            "targetParagraphs": ["First paragraph.", ...]
        }

    An article that was already processed is returned unchanged.
    """
    article_store = get_article_store()

    existing = article_store.find(article_id)
    if existing is not None and existing.sentence_count:
        return jsonify({
            'success': True,
            'message': 'Article already processed',
            'data': article_payload(existing)
        }), 200

    data = get_json_object()
    if data is None:
        return missing_json_response()

    source_paragraphs = data.get('sourceParagraphs')
    target_paragraphs = data.get('targetParagraphs')
    if not is_paragraph_list(source_paragraphs) or not is_paragraph_list(target_paragraphs):
        return missing_fields_response('sourceParagraphs and targetParagraphs must be lists of strings')

    processed = SentenceAligner().align(source_paragraphs, target_paragraphs)

    if not validate_sentence_cards(processed.sentences):
        processing_error = error_handler.handle_invalid_cards(
            find_card_issues(processed.sentences),
            context={'article_id': article_id}
        )
        error_handler.add_error(processing_error)
        response = format_error_response(
            error_message=processing_error.message,
            error_code=ErrorCode.INVALID_SENTENCES,
            action_required=ActionRequired.FIX_INPUT,
            additional_data={'details': processing_error.details}
        )
        return jsonify(response), 400

    article_store.save(article_id, processed)

    return jsonify({
        'success': True,
        'message': 'Article processed successfully',
        'data': article_payload(processed)
    }), 200


@bp.route('/articles/<article_id>/process-sentences', methods=['GET'])
def get_processed_sentences(article_id: str):
    """Return the sentence cards of a processed article."""
    article = get_article_store().find(article_id)

    if article is None or not article.sentence_count:
        return jsonify({
            'success': False,
            'message': 'Article not yet processed',
            'needsProcessing': True
        }), 200

    return jsonify({
        'success': True,
        'data': article_payload(article)
    }), 200


@bp.route('/reading-sessions', methods=['POST'])
def create_reading_session():
    """
    Start a reading session, or resume the unfinished one for the article.

    Expects JSON body:
        {
            "articleId": "article-1",
            "autoPlayTTS": true,
            "ttsSpeed": 1.0,
            "showTranslation": false
        }
    """
    data = get_json_object()
    if data is None:
        return missing_json_response()

    article_id = data.get('articleId')
    if not isinstance(article_id, str) or not article_id:
        return missing_fields_response('articleId is required')

    settings = validate_settings({key: data[key] for key in SETTING_FIELDS if key in data})
    article = get_article_store().find(article_id)
    if article is None:
        return article_not_found_response(article_id)

    if not article.sentence_count:
        response = format_error_response(
            error_message="Article must be processed into sentences first",
            error_code=ErrorCode.ARTICLE_NOT_PROCESSED,
            action_required=ActionRequired.PROCESS_ARTICLE
        )
        return jsonify(response), 400

    session_store = get_session_store()

    existing = session_store.find_active(article_id)
    if existing is not None and existing.total_cards == article.sentence_count:
        logger.info(f"Resuming reading session {existing.session_id} for article {article_id}")
        return jsonify({
            'success': True,
            'message': 'Resuming existing session',
            'sessionId': existing.session_id,
            'session': session_payload(existing)
        }), 200

    session = session_store.create(article.sentence_count, article_id, settings)

    return jsonify({
        'success': True,
        'message': 'Reading session started',
        'sessionId': session.session_id,
        'session': session_payload(session)
    }), 201


@bp.route('/reading-sessions', methods=['GET'])
def list_reading_sessions():
    """List reading sessions, most recently active first."""
    article_store = get_article_store()
    sessions = []
    for session in get_session_store().list_sessions():
        data = session_payload(session)
        article = article_store.find(session.article_id)
        data['article'] = {
            'id': session.article_id,
            'difficulty': article.difficulty.value,
            'estimatedMinutes': article.estimated_minutes,
            'sentenceCount': article.sentence_count
        } if article else None
        sessions.append(data)

    return jsonify({
        'success': True,
        'sessions': sessions
    }), 200


@bp.route('/reading-sessions/<session_id>', methods=['GET'])
def get_reading_session(session_id: str):
    """Return a reading session with its article's sentence cards."""
    session = get_session_store().fetch(session_id)
    return jsonify({
        'success': True,
        'session': session_payload(session, include_article=True)
    }), 200


@bp.route('/reading-sessions/<session_id>', methods=['PATCH'])
def update_reading_session(session_id: str):
    """
    Update settings or progress fields of a reading session.

    Accepts any subset of currentCardIndex, completedCards, cardsFlipped,
    audioReplays, timePerCard, autoPlayTTS, ttsSpeed, showTranslation
    and completedAt.
    """
    data = get_json_object()
    if data is None:
        return missing_json_response()

    session = get_session_store().patch(session_id, data)

    return jsonify({
        'success': True,
        'message': 'Session updated successfully',
        'session': session_payload(session)
    }), 200


@bp.route('/reading-sessions/<session_id>', methods=['DELETE'])
def delete_reading_session(session_id: str):
    """Delete a reading session."""
    if not get_session_store().delete(session_id):
        return session_not_found_response(session_id)

    return jsonify({
        'success': True,
        'message': 'Reading session deleted successfully'
    }), 200


@bp.route('/reading-sessions/<session_id>/complete-card', methods=['POST'])
def complete_card(session_id: str):
    """
    Mark a card complete and record its telemetry.

    Expects JSON body:
        {
            "cardIndex": 0,
            "timeSpent": 12,
            "wasFlipped": false,
            "audioReplayCount": 1
        }
    """
    data = get_json_object()
    if data is None:
        return missing_json_response()

    if 'cardIndex' not in data or 'timeSpent' not in data:
        return missing_fields_response('cardIndex and timeSpent are required')

    result = get_session_store().record_card_completion(
        session_id,
        card_index=data['cardIndex'],
        time_spent=data['timeSpent'],
        was_flipped=data.get('wasFlipped', False),
        audio_replay_count=data.get('audioReplayCount', 0)
    )

    return jsonify({
        'success': True,
        'message': 'Card completed successfully',
        'session': session_payload(result.session),
        'progress': result.progress.to_dict(),
        'nextCardIndex': result.next_card_index
    }), 200
