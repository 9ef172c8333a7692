# -*- coding: utf-8 -*-
"""
ログ出力の設定を行うモジュールです。

探索エンジン・最適化レイヤー・キャッシュはすべて同じロガーを使い、
メッセージの先頭に [search] や [optimizer] などのタグを付けて
どの部品からのログかを区別します。
"""

from __future__ import annotations

import logging

# timetable_solver パッケージ共通で使うロガー名
LOGGER_NAME = "timetable_solver"

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"


def get_logger() -> logging.Logger:
    """
    "timetable_solver" ロガーを返します。

    ライブラリとして組み込まれた場合は、呼び出し側が用意したハンドラとレベルを尊重します。
    何も設定されていないときに限り、stderr 向けの StreamHandler を 1 つ付けて
    INFO 以上を LOG_FORMAT の形式で出すようにします（二重登録はしません）。
    """
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    return logger
