# src/trace_parse/ui/app.py
"""
アプリケーションのエントリポイント。
コマンドライン引数を解析し、メインウィンドウを起動します。
"""
import argparse
import logging
import sys
from typing import List, Optional

from PySide6.QtWidgets import QApplication

from trace_parse.config.loader import ConfigLoader
from .main_window import MainWindow


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trace-parse", description="Navigate large CPU execution traces.")
    parser.add_argument("-f", "--file", help="Trace file to load")
    parser.add_argument("-c", "--config", help="YAML config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


# @intent:responsibility アプリケーションを起動し、指定があればトレースファイルを開きます。
def main(argv: Optional[List[str]] = None):
    args = build_arg_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = ConfigLoader().load_from_file(args.config) if args.config else None

    app = QApplication(sys.argv[:1])
    main_win = MainWindow(config)
    main_win.show()
    if args.file:
        main_win.open_trace(args.file)
    sys.exit(app.exec())

if __name__ == '__main__':
    main()
