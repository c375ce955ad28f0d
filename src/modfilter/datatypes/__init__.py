from modfilter.datatypes.verdict_datatypes import ErrorCode, Verdict

__all__ = ["ErrorCode", "Verdict"]
