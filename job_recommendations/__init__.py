"""Candidate–job matching and recommendation pipeline."""
