"""Registry — identity-keyed profile records under a single administrator.

The registry provides:
- Registration: bulk overwrite or guarded first-time sign-up
- Status: a Present/Absent flag per profile
- Tags: a bounded, duplicate-free label list per profile
- Administration: one-step ownership handoff
"""
