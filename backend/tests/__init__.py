"""
Learner Progress Engine Test Suite

Test Structure:
    tests/
    ├── conftest.py          # Shared fixtures and configuration
    └── unit/                # Unit tests (isolated, no external dependencies)
        ├── test_streak.py         # Streak transitions
        ├── test_stats.py          # Derived statistics
        ├── test_recorders.py      # Collection mutations
        ├── test_achievements.py   # Achievement rules and catalog
        ├── test_repository.py     # In-memory and SQL repositories
        ├── test_locks.py          # Per-learner locks
        ├── test_progress_service.py  # End-to-end service flows
        └── test_progress_api.py   # HTTP endpoints

Running Tests:
    # Run all tests
    pytest backend/tests/ -v

    # Run with coverage
    pytest backend/tests/ --cov=progress_engine --cov-report=html
"""
