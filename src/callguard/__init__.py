"""CallGuard: real-time voice-scam risk analysis for live call transcripts."""

__version__ = "0.1.0"
