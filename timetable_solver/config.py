# -*- coding: utf-8 -*-
"""
timetable_solver 全体で共通して使う設定値をまとめたモジュールです。

実運用時には、ここを編集することで
- 既定の探索アルゴリズム
- 大規模問題とみなす閾値
- 解キャッシュのサイズと有効期限
- 局所探索（min-conflicts / 焼きなまし / GA / タブー探索）の反復回数
- 並列ワーカー数
などを簡単に変更できます。

個々の値は PerformanceOptimizer や solve_problem() のキーワード引数で
呼び出しごとに上書きすることもできます。
"""

from __future__ import annotations

from typing import Optional

# ==== 探索アルゴリズム =====================================================

# 探索アルゴリズムの選択: "fc", "ac3", "min_conflicts", "sa", "greedy", "ga", "tabu"
#   fc            : バックトラック + forward checking（既定）
#   ac3           : バックトラック + AC-3 前処理
#   min_conflicts : min-conflicts 局所探索
#   sa            : 焼きなまし法（悪化する手も確率的に受け入れる局所探索）
#   greedy        : 貪欲法（バックトラックしない 1 回きりの割り当て）
#   ga            : 遺伝的アルゴリズム
#   tabu          : タブー探索
DEFAULT_STRATEGY: str = "fc"

# 探索の進捗ログを何ノードごとに出すか
PROGRESS_LOG_INTERVAL: int = 1000

# ==== 大規模問題の判定 =====================================================
# いずれかの値を「超えた」場合に、ドメイン縮小 + 分割 + 並列求解の経路に入る

LARGE_SCALE_VARIABLE_THRESHOLD: int = 1000
LARGE_SCALE_CONSTRAINT_THRESHOLD: int = 500
LARGE_SCALE_AVG_DOMAIN_THRESHOLD: float = 50.0

# ==== 変数の静的優先度 =====================================================
# priority = DOMAIN_WEIGHT // |domain| + (関連制約数) + HARD_WEIGHT * (関連ハード制約数)
# 値が大きい変数ほど先に並べる

STATIC_PRIORITY_DOMAIN_WEIGHT: int = 1000
STATIC_PRIORITY_HARD_WEIGHT: int = 10

# ==== 解キャッシュ =========================================================

# キャッシュに保持するエントリ数の上限（超えたら最も古くアクセスされたものを捨てる）
CACHE_MAX_SIZE: int = 1000

# キャッシュエントリの有効期限（秒）
CACHE_TTL_SECONDS: float = 3600.0

# ==== Min-conflicts 関連 ===================================================

# 最大ステップ数 = MIN_CONFLICTS_STEP_FACTOR * 変数の数
MIN_CONFLICTS_STEP_FACTOR: int = 100

# 改善手が無くなった（局所最適で停滞した）ときにランダム再スタートするか。
# False の場合は、その時点で「解なし」として打ち切ります。
MIN_CONFLICTS_RESTART_ON_STALL: bool = False

# ==== Simulated Annealing 関連 =============================================

# Simulated Annealing の初期温度
SA_INITIAL_TEMP: float = 100.0

# Simulated Annealing の冷却率
SA_COOLING_RATE: float = 0.995

# Simulated Annealing の終了温度
SA_MIN_TEMP: float = 0.1

# Simulated Annealing の最大反復回数
SA_MAX_ITERATIONS: int = 50000

# ==== Greedy 関連 ==========================================================

# 変数の選び方: "mrv", "degree", "mrv_degree", "dom_deg"
#   mrv        : 残りドメインが最小の変数
#   degree     : 制約でつながる変数が最も多い変数
#   mrv_degree : MRV で選び、同点なら degree の大きい方（既定）
#   dom_deg    : |ドメイン| / degree が最小の変数
GREEDY_HEURISTIC: str = "mrv_degree"

# 値を 1 つ割り当てるたびに forward checking でドメインを縮めるか
GREEDY_FORWARD_CHECKING: bool = True

# 1 変数あたりに試す値の最大数
GREEDY_MAX_ATTEMPTS_PER_VARIABLE: int = 10

# ==== Genetic Algorithm 関連 ===============================================

# 個体数
GA_POPULATION_SIZE: int = 50

# 最大世代数
GA_GENERATIONS: int = 200

# 子個体の各変数を突然変異させる確率
GA_MUTATION_RATE: float = 0.1

# 交叉を行う確率（行わない場合は親をそのまま複製）
GA_CROSSOVER_RATE: float = 0.8

# 次の世代にそのまま残す上位個体の数
GA_ELITE_SIZE: int = 2

# トーナメント選択の参加個体数
GA_TOURNAMENT_SIZE: int = 3

# 最良個体がこの世代数だけ続けて改善しなければ打ち切る
GA_STALL_GENERATIONS: int = 50

# ==== Tabu Search 関連 =====================================================

# 一度行った手（変数 -> 値）を禁止しておく反復回数
TABU_TENURE: int = 10

# Tabu Search の最大反復回数
TABU_MAX_ITERATIONS: int = 5000

# ==== 並列実行 =============================================================

# 部分問題を解くワーカー数。None なら os.cpu_count() を使う
MAX_WORKERS: Optional[int] = None

# shutdown() で実行中タスクの完了を待つ最大秒数。
# これを過ぎたら未着手のタスクをキャンセルする
SHUTDOWN_TIMEOUT_SECONDS: float = 30.0
