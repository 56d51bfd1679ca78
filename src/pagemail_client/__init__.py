"""
PageMail watch client.

Components:
- polling/: adaptive background poller (Poller) and its clock/visibility/reactive helpers
- tasks/: capture task models, REST client, stores and the watch session wiring them to pollers
- connectors/: background event-loop runner and console REPL
- cli/: composition root, slash commands and the `pagemail-watch` entry point
"""

__version__ = "0.1.0"
