"""
Storage for processed articles.
"""

import json
import logging
import os
import re
from pathlib import Path
from typing import Optional

from ..config import Config
from ..errors import StoreError, ArticleNotFoundError, error_handler
from ..models import ProcessedArticle


logger = logging.getLogger(__name__)

ARTICLE_ID_PATTERN = re.compile(r'^[A-Za-z0-9_-]{1,128}$')


class ArticleStore:
    """Keeps the sentence cards of each processed article as a JSON file."""

    def __init__(self, storage_dir: str = None):
        if storage_dir is None:
            storage_dir = Config.ARTICLE_DIR
        self.storage_dir = Path(storage_dir).resolve()
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def save(self, article_id: str, article: ProcessedArticle) -> None:
        """Store a processed article, replacing any earlier version."""
        article_file = self._get_article_file_path(article_id)
        temp_file = article_file.with_suffix('.json.tmp')
        try:
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(article.to_dict(), f, indent=2, ensure_ascii=False)
            os.replace(temp_file, article_file)
        except OSError as e:
            logger.error(f"Error saving article {article_id}: {e}")
            raise StoreError(error_handler.handle_storage_error(e, "save article", {'article_id': article_id}))
        logger.info(f"Saved processed article {article_id} ({article.sentence_count} cards)")

    def find(self, article_id: str) -> Optional[ProcessedArticle]:
        """Return the processed article, or None if it has not been processed."""
        if not ARTICLE_ID_PATTERN.match(article_id or ''):
            return None

        article_file = self._get_article_file_path(article_id)
        if not article_file.exists():
            return None
        try:
            with open(article_file, 'r', encoding='utf-8') as f:
                return ProcessedArticle.from_dict(json.load(f))
        except OSError as e:
            raise StoreError(error_handler.handle_storage_error(e, "load article", {'article_id': article_id}))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Corrupt article file {article_file.name}: {e}")
            return None

    def get(self, article_id: str) -> ProcessedArticle:
        """Return the processed article or raise ArticleNotFoundError."""
        article = self.find(article_id)
        if article is None:
            raise ArticleNotFoundError(error_handler.handle_not_found("Article", article_id))
        return article

    def delete(self, article_id: str) -> bool:
        """Delete a processed article. Returns False if it did not exist."""
        if not ARTICLE_ID_PATTERN.match(article_id or ''):
            return False
        article_file = self._get_article_file_path(article_id)
        if not article_file.exists():
            return False
        try:
            article_file.unlink()
        except OSError as e:
            raise StoreError(error_handler.handle_storage_error(e, "delete article", {'article_id': article_id}))
        logger.info(f"Deleted processed article {article_id}")
        return True

    def _get_article_file_path(self, article_id: str) -> Path:
        if not ARTICLE_ID_PATTERN.match(article_id or ''):
            raise ArticleNotFoundError(error_handler.handle_not_found("Article", str(article_id)))
        return self.storage_dir / f"article_{article_id}.json"
