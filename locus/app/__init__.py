"""Locus console application."""
