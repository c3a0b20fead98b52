#samlogin/utils/logger.py
import os
import re
import logging
from logging.handlers import TimedRotatingFileHandler
from datetime import datetime


class LoginAuditLogger:
    def __init__(self, log_dir="logs/audit"):
        os.makedirs(log_dir, exist_ok=True)
        self.log_dir = log_dir

        self.logger = logging.getLogger(f"LoginAudit.{os.path.abspath(log_dir)}")
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False
        if not self.logger.handlers:
            # Configure daily rotation at midnight
            handler = TimedRotatingFileHandler(
                filename=os.path.join(log_dir, "audit_log.md"),
                when="midnight",
                interval=1,
                backupCount=30,  # Keep 30 days of history
                encoding="utf-8",
            )
            handler.setFormatter(logging.Formatter('%(message)s'))
            self.logger.addHandler(handler)

    def log_event(self, account, message, event_type="STATE"):
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        entry = [
            f"---",
            f"### Event: {event_type}",
            f"**Timestamp:** {timestamp}",
            f"**Account:** {account}",
            f"\n{message}",
            f"\n---"
        ]
        self.logger.info("\n".join(entry))

    def log_transition(self, account, before, after):
        self.log_event(account, f"{before.value} -> {after.value}", "TRANSITION")

    def screenshot_path(self, account):
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", account)
        return os.path.join(self.log_dir, f"error_{safe}_{stamp}.png")

    def close(self):
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)
