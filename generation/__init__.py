"""
Exam Assembly
generation/

Steps:
1. Candidate Pool   — active problems for the subject/chapters (database.crud)
2. Bucket Mapping   — 최상/상/중/하/최하 → difficulty 5..1
3. Selection        — shuffled pool, per-bucket greedy pick, no backfill on shortfall
4. Persistence      — Exam + ordered ExamProblem links in one transaction
"""
