"""
Per-run transcript of everything printed to the console
"""

import os
import sys
import time
from datetime import datetime

_active_transcript = None


class _Tee:
    """Writes to the original stream and the transcript file"""

    def __init__(self, stream, log_file):
        self._stream = stream
        self._log_file = log_file

    def write(self, data):
        self._stream.write(data)
        self._log_file.write(data)
        return len(data)

    def flush(self):
        self._stream.flush()
        self._log_file.flush()

    def __getattr__(self, name):
        return getattr(self._stream, name)


class Transcript:
    def __init__(self, path: str):
        self.path = path
        self._file = None
        self._stdout = None
        self._stderr = None

    def start(self):
        self._file = open(self.path, "a", encoding="utf-8")
        self._stdout, self._stderr = sys.stdout, sys.stderr
        sys.stdout = _Tee(self._stdout, self._file)
        sys.stderr = _Tee(self._stderr, self._file)

    def record(self, text: str):
        """Write text to the transcript only (operator input is already on screen)"""
        if self._file is not None:
            self._file.write(text)
            self._file.flush()

    def stop(self):
        global _active_transcript
        if self._file is None:
            return
        sys.stdout.flush()
        sys.stdout, sys.stderr = self._stdout, self._stderr
        self._file.close()
        self._file = None
        if _active_transcript is self:
            _active_transcript = None


def transcript_filename(now: datetime = None) -> str:
    now = now or datetime.now()  # Use system local time
    timezone_acronym = time.strftime("%Z")
    timestamp = now.strftime("%m-%d-%yT%H.%M.%S") + f"{timezone_acronym}"
    return f"spotto_onboarding_{timestamp}.log"


def start_transcript(log_dir: str, now: datetime = None) -> Transcript:
    """
    Start teeing stdout and stderr into a new timestamped file under log_dir.
    Returns the running Transcript; call stop() to restore the console streams.
    """
    global _active_transcript
    os.makedirs(log_dir, exist_ok=True)
    transcript = Transcript(os.path.join(log_dir, transcript_filename(now)))
    transcript.start()
    _active_transcript = transcript
    print(f"Transcript: {transcript.path}")
    return transcript


def prompt(message: str, input_fn=input) -> str:
    """Ask the operator a question, keeping both question and answer in the transcript"""
    print(message, end="", flush=True)
    answer = input_fn()
    if _active_transcript is not None:
        _active_transcript.record(f"{answer}\n")
    return answer
