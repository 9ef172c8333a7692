# -*- coding: utf-8 -*-
"""
timetable_solver.csp パッケージ

時間割の CSP（制約充足問題）を解く探索エンジンをまとめています。

主に以下の役割を持つモジュールから構成されています。
- constraints.py : 制約の抽象クラスと汎用的な制約
- problem.py     : CSP インスタンス（変数・制約・ドメイン）
- domains.py     : ドメインの縮小と変数の静的優先度
- propagation.py : 整合性チェックと制約伝播（forward checking / AC-3）
- scoring.py     : conflict 数とソフト制約のスコアリング
- search.py      : MRV / LCV 付きのバックトラック探索
- search_mc.py   : Min-conflicts による局所探索
- search_sa.py   : Simulated Annealing による局所探索
- search_greedy.py : バックトラックしない貪欲法
- search_ga.py   : Genetic Algorithm による探索
- search_tabu.py : Tabu Search による局所探索
- engine.py      : 探索アルゴリズムの切り替え
"""
