"""Community wallet governance — multisig treasury record-keeper."""

__version__ = "0.1.0"
