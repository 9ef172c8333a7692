# -*- coding: utf-8 -*-
"""
timetable_solver.optimize パッケージ

大規模な時間割問題を現実的な時間で解くための仕組みをまとめています。

- cache.py     : 解のキャッシュ（LRU + TTL）
- decompose.py : 制約でつながった変数ごとの部分問題への分割
- optimizer.py : キャッシュ・分割・並列求解・合成の取りまとめ
"""
