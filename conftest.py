import os

# Set env vars BEFORE any serving imports so tests never pick up a local .env
# or JSON collaborator files.
os.environ["CATALOG_JSON_PATH"] = ""
os.environ["INTERACTIONS_JSON_PATH"] = ""
os.environ["SIGNALS_JSON_PATH"] = ""
os.environ["RANDOM_SEED"] = "0"
os.environ.setdefault("LOG_LEVEL", "WARNING")
