"""Patrol Nav command-line client"""
