from __future__ import annotations  # Re-export oracle adapter public API

from .adapter import ORACLE_KEYS, QUESTION_KEY, EvaluationOracle, OracleAdapter

__all__ = ["ORACLE_KEYS", "QUESTION_KEY", "EvaluationOracle", "OracleAdapter"]
