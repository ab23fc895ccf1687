"""HTTP API for the CFS simulator.

This package provides a Flask application that runs simulations on
request.  It is an **optional** extra — install with::

    pip install cfs-sim[web]

The ``create_app`` factory in ``app.py`` serves two endpoints:

- ``GET /api/config`` — the default configuration.
- ``POST /api/simulate`` — run a workload and return events and summary.
"""
