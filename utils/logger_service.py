import csv
import os
from datetime import datetime

LOG_DIR = os.environ.get("FAMILY_CHART_LOG_DIR", "family_tree_data")
LOG_HEADER = ["Timestamp", "User", "Action", "Details"]


class LoggerService:
    """Журнал дій користувача у CSV (завантаження, згортання гілок тощо)."""

    def __init__(self, log_dir: str = LOG_DIR):
        self.log_file = os.path.join(log_dir, "activity_log.csv")
        if not os.path.exists(self.log_file):
            os.makedirs(log_dir, exist_ok=True)
            with open(self.log_file, 'w', newline='', encoding='utf-8') as f:
                csv.writer(f).writerow(LOG_HEADER)

    def _current_user(self) -> str:
        user = "Viewer"
        try:
            import streamlit as st
            # Поза Streamlit session_state порожній
            if 'name' in st.session_state:
                user = st.session_state['name']
        except ImportError:
            pass
        except Exception:
            pass  # Інші помилки контексту Streamlit
        return user

    def log(self, action: str, details: str):
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        user = self._current_user()
        try:
            with open(self.log_file, 'a', newline='', encoding='utf-8') as f:
                csv.writer(f).writerow([timestamp, user, action, details])
        except OSError as e:
            print(f"Logging error: {e}")

    def get_recent_logs(self, limit=20):
        if not os.path.exists(self.log_file):
            return []
        with open(self.log_file, 'r', encoding='utf-8') as f:
            rows = list(csv.reader(f))
        return rows[1:][-limit:][::-1]
