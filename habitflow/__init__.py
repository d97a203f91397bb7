"""HabitFlow — habit statistics, insights and monthly reviews."""

__version__ = "0.1.0"
