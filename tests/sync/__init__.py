"""
Test suite for the filesystem-to-Kenku synchronization system.

This package contains tests for the synchronization components:
- Path classification and url building
- SyncEventQueue ordering, gating and dispatch
- WatchSupervisor event conversion and initial scan
- FolderSyncEngine watch and backfill runs
- ReconciliationController purge and view modes
"""
