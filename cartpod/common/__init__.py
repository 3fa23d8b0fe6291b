"""
Common utilities and shared components for the CartPod backend.
"""
