"""Diary store — binary day files, tag dictionary, rollup caches and ledger.

Layout:
    <root>/
    ├── tags.txt                       # "<id> <name>" per tag
    ├── .status.txt                    # Task ledger; present only while a task runs
    ├── .staging/                      # Scratch space for atomic writes
    └── data/
        └── 2024/
            ├── year_cache.txt         # One line per month
            └── 3/
                ├── month_cache.txt    # One line per day
                └── 14-4.dat           # Day 14, ISO weekday 4 (Thursday)
"""
