"""
Match Tagger - session ledger for tagging gameplay moments in match recordings.

An operator watches a match video and tags lives or events. Each tag is
timestamped against the video position, kept in a session ledger,
persisted locally and exported as CSV.

The UI is an external collaborator. It sends intents to the
SessionController and renders the Session snapshots it gets back.
"""

__version__ = "0.3.0"
