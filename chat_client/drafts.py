# chat_client/drafts.py
import json
import logging
import os
from datetime import datetime, timezone

from .models import Draft

logger = logging.getLogger(__name__)


def _utcnow():
    return datetime.now(timezone.utc)


class DraftCache:
    """
    Unsent text per conversation. Never leaves the device.

    With ``path`` set the drafts survive restarts in a small JSON file;
    without it they live in memory for the session only.
    """

    def __init__(self, path=None, clock=_utcnow):
        self.path = path
        self._clock = clock
        self._drafts = {}
        if path:
            self._load()

    def save(self, conversation_id, text):
        if not text or not text.strip():
            self.clear(conversation_id)
            return None
        draft = Draft(text=text, saved_at=self._clock())
        self._drafts[conversation_id] = draft
        self._flush()
        return draft

    def get(self, conversation_id):
        return self._drafts.get(conversation_id)

    def clear(self, conversation_id):
        if self._drafts.pop(conversation_id, None) is not None:
            self._flush()

    def clear_all(self):
        self._drafts.clear()
        self._flush()

    def __contains__(self, conversation_id):
        return conversation_id in self._drafts

    def __len__(self):
        return len(self._drafts)

    # --- persistence ---

    def _load(self):
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, encoding='utf-8') as fh:
                raw = json.load(fh)
        except (OSError, ValueError):
            logger.warning('Ignoring unreadable draft file %s', self.path, exc_info=True)
            return

        for key, item in raw.items():
            self._drafts[int(key)] = Draft(text=item['text'], saved_at=datetime.fromisoformat(item['saved_at']))

    def _flush(self):
        if not self.path:
            return
        raw = {
            str(conversation_id): {'text': draft.text, 'saved_at': draft.saved_at.isoformat()}
            for conversation_id, draft in self._drafts.items()
        }
        tmp_path = f'{self.path}.tmp'
        with open(tmp_path, 'w', encoding='utf-8') as fh:
            json.dump(raw, fh)
        os.replace(tmp_path, self.path)
