"""Entry point for the PDF Pinpoint application."""
import logging
import os
import sys

from PyQt6.QtWidgets import QApplication

from pinpoint.main_window import MainWindow


def main():
    logging.basicConfig(
        level=os.environ.get("PINPOINT_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = QApplication(sys.argv)
    app.setApplicationName("PDF Pinpoint")
    app.setOrganizationName("PDFPinpoint")

    window = MainWindow()
    window.show()
    if len(sys.argv) > 1:
        window.load_file(sys.argv[1])

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
