import os
import sys

# Ensure resume_gate/ and now_playing/ are importable from tests
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

os.environ.setdefault("RESUME_EMAIL_DRY_RUN", "1")
os.environ.setdefault("RESUME_STORE", "memory")
