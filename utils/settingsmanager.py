import json
import logging
import os

logger = logging.getLogger(__name__)


class SettingsManager:
    """Local JSON preferences (active font, remembered session, answer preset)."""

    def __init__(self, filename="settings.json"):
        self.filename = str(filename)
        self.settings = {}
        self.load()

    def load(self):
        if os.path.exists(self.filename):
            try:
                with open(self.filename, "r", encoding="utf-8") as f:
                    self.settings = json.load(f)
            except json.JSONDecodeError:
                logger.warning("[settings] failed to decode %s; resetting", self.filename)
                self.settings = {}
                self.save()
        else:
            self.settings = {}
            self.save()

    def save(self):
        directory = os.path.dirname(self.filename)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.filename, "w", encoding="utf-8") as f:
            json.dump(self.settings, f, indent=4, ensure_ascii=False)

    def get(self, key, default=None):
        return self.settings.get(key, default)

    def set(self, key, value):
        self.settings[key] = value
        self.save()

    def remove(self, key):
        if key in self.settings:
            del self.settings[key]
            self.save()
