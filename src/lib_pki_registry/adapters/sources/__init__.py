"""Snapshot sources: strict directory walk and lenient packaged baseline."""
