from pathlib import Path

import yaml


class MenuTranslator:
    """
    Translate menu labels using one yaml file per locale: `<translations_dir>/<locale>.yaml`.

    Each file maps a label, as written in the menu configuration, to its translation.
    Files are read the first time their locale is requested. A missing file or a missing label
    gives back the label unchanged.
    """

    def __init__(self, translations_dir: str):
        self.translations_dir = Path(translations_dir)
        self._labels: dict[str, dict[str, str]] = {}

    def get_labels(self, locale: str) -> dict[str, str]:
        if locale not in self._labels:
            translations_file = self.translations_dir / f"{locale}.yaml"
            labels: dict[str, str] = {}
            if translations_file.is_file():
                with translations_file.open(encoding="utf-8") as file:
                    content = yaml.safe_load(file) or {}
                labels = {str(label): str(text) for label, text in content.items()}
            self._labels[locale] = labels
        return self._labels[locale]

    def translate(self, label: str, locale: str) -> str:
        return self.get_labels(locale).get(label, label)
