"""Services Layer - the imperative shell around the pure core.

Invariants:
    - One service per component: ConnectionGraph, GroupRoster, PromptCycle,
      ChatThreads, NotificationHub, UserDirectory
    - Every operation takes the acting user id explicitly
    - Services load rows, raise the error a core check returns, write, commit,
      then fan out notifications

Design Decisions:
    - A service instance wraps one request's AsyncSession (self.db)
"""
