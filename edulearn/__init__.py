"""EduLearn API: signup approval, access control and watch-progress tracking."""

__version__ = "0.1.0"
