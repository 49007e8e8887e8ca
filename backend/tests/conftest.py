import os
import sys
import tempfile

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

# The stores are module-level singletons; point them at a throwaway database
# before anything imports marketlink.
_db_dir = tempfile.mkdtemp(prefix="marketlink-tests-")
os.environ["MARKETLINK_DB_PATH"] = os.path.join(_db_dir, "marketlink.sqlite3")
os.environ["MARKETLINK_SEED_DEMO"] = "false"
os.environ["ADMIN_EMAILS"] = "admin@marketlink.test"
os.environ.pop("RESEND_API_KEY", None)
