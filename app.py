import logging
import os
import sys
from pathlib import Path

from doc_browser.config.loader import load_browser_config
from doc_browser.core.coordinator import ViewCoordinator
from doc_browser.core.dataset_loader import load_dataset_file
from doc_browser.core.view_base import HostShell
from doc_browser.core.view_registry import ViewRegistry
from doc_browser.logging_config import configure_logging
from doc_browser.views import register_table_views

configure_logging()
logger = logging.getLogger("doc_browser.app")


class ConsoleHost(HostShell):
    """Host shell that just reports the selection size."""

    def __init__(self):
        self.selected = 0

    def update_selected(self, count: int) -> None:
        self.selected = count

    def filter_event(self) -> None:
        logger.info("Filter applied", extra={"n_selected": self.selected})


def main(argv: list) -> int:
    # 1. Dataset path from argv or env
    data_path = argv[1] if len(argv) > 1 else os.getenv("DOC_BROWSER_DATA")
    if not data_path:
        print("Usage: python app.py <documents.json> [language]")
        return 2

    # 2. Optional config file
    config_path = os.getenv("DOC_BROWSER_CONFIG")
    config = load_browser_config(Path(config_path) if config_path else None)

    host = ConsoleHost()
    coordinator = ViewCoordinator(host, config=config, registry=register_table_views(ViewRegistry()))
    coordinator.set_document_data(load_dataset_file(Path(data_path), config))

    # 3. Optional language selection, e.g. `python app.py docs.json en`
    if len(argv) > 2:
        coordinator.emit("language_selection", argv[2])

    for view in coordinator.views.values():
        print(view.to_text())
        print()
    print(f"Selected documents: {host.selected} / {len(coordinator.dataset)}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
