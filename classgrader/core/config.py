# /classgrader/core/config.py

"""
Central configuration for the classgrader backend.

Every setting is read from the environment (a local `.env` file is loaded
first for development). Services read these module attributes at call time,
so tests can monkeypatch them without reloading anything.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# --- Persistence ---
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./classgrader.db")

# --- External AI Endpoint ---
AI_SERVER_URL = os.getenv("AI_SERVER_URL", "http://localhost:8001")
AI_ENDPOINT_PATH = os.getenv("AI_ENDPOINT_PATH", "process_exam")
AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "120"))

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Roster Policies ---
# "accepted": persist only candidates with a plausible student ID.
# "all": once the batch passes the gate, persist every extracted row (legacy).
MASTERLIST_PERSIST_MODE = os.getenv("MASTERLIST_PERSIST_MODE", "accepted").lower()

# "overwrite": last write wins at an existing student key (a warning is logged).
# "reject": refuse to add a student whose key is already taken.
STUDENT_KEY_CONFLICT_POLICY = os.getenv("STUDENT_KEY_CONFLICT_POLICY", "overwrite").lower()

# "cascade": deleting an activity also removes every score recorded against it.
# "retain": leave the nested score entries in place.
ACTIVITY_DELETE_POLICY = os.getenv("ACTIVITY_DELETE_POLICY", "cascade").lower()

MASTERLIST_PERSIST_MODES = ("accepted", "all")
STUDENT_KEY_CONFLICT_POLICIES = ("overwrite", "reject")
ACTIVITY_DELETE_POLICIES = ("cascade", "retain")
