"""
nokrfp/api/wizard_store.py — Server-side wizard sessions

The browser cookie carries only a short session id ("sid"). The step index
and answer record live here in process memory, keyed by that id, so long
free-text answers never bloat the cookie and two requests in flight from
the same browser both land on the same record.

Every read-modify-write goes through edit(), which holds the store lock for
the whole load → mutate → save cycle.

Entries idle longer than SESSION_TTL are dropped; past MAX_SESSIONS the
least recently touched are dropped first. State is per process: run a
single worker (threads are fine), e.g. `gunicorn -w 1 --threads 8 app:app`.
"""
import logging
import threading
import time
from collections import OrderedDict
from contextlib import contextmanager

from nokrfp.forms.rfp_form import WizardSession

log = logging.getLogger("nokrfp.wizard_store")

SESSION_TTL = 12 * 3600   # seconds idle before a wizard is forgotten
MAX_SESSIONS = 5000

_store_lock = threading.Lock()
_sessions: "OrderedDict[str, tuple]" = OrderedDict()   # sid → (last_touched, to_dict())


def _get(sid: str, now: float) -> WizardSession:
    entry = _sessions.get(sid)
    if entry is None or now - entry[0] > SESSION_TTL:
        return WizardSession()
    return WizardSession.from_dict(entry[1])


def _put(sid: str, wiz: WizardSession, now: float):
    _sessions[sid] = (now, wiz.to_dict())
    _sessions.move_to_end(sid)
    _prune(now)


def _prune(now: float):
    # oldest-touched first, so stop at the first live entry once under the cap
    dropped = 0
    while _sessions:
        sid, (touched, _) = next(iter(_sessions.items()))
        if now - touched <= SESSION_TTL and len(_sessions) <= MAX_SESSIONS:
            break
        _sessions.popitem(last=False)
        dropped += 1
    if dropped:
        log.info("Dropped %d idle wizard sessions (%d live)", dropped, len(_sessions))


def load(sid: str) -> WizardSession:
    """Independent copy of the stored wizard; changes are not saved."""
    with _store_lock:
        return _get(sid, time.time())


@contextmanager
def edit(sid: str):
    """Yield the stored wizard for mutation and save it on clean exit."""
    with _store_lock:
        now = time.time()
        wiz = _get(sid, now)
        yield wiz
        _put(sid, wiz, now)


def discard(sid: str):
    with _store_lock:
        _sessions.pop(sid, None)


def clear():
    with _store_lock:
        _sessions.clear()


def session_count() -> int:
    with _store_lock:
        return len(_sessions)
