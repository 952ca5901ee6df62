"""
Features package — self-contained building blocks of the build pipeline.

  agents/     — roster of worker profiles and their role instructions
  tasks/      — scheduled work items, status tracking, Postgres audit trail
  run_log/    — append-only log of a run
  usage/      — approximate usage and cost accounting
  artifacts/  — parsing generated files out of task output

Each sub-package re-exports its public API from __init__.py.
"""
