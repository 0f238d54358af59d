"""Partner Notifier: email and SMS notifications for SAP Business One partners."""

__version__ = "1.0.0"
