"""podcaddy - Podcast downloader and portable player sync tool."""

__version__ = "0.1.0"
