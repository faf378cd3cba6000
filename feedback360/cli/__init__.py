"""Command-line tools for feedback360.

- ``python -m feedback360.cli analyze FILE`` — serve or compute insights
- ``python -m feedback360.cli invalidate ID`` — drop a stored analysis

argparse only; heavy imports (LLM SDKs) are deferred into the commands.
"""
