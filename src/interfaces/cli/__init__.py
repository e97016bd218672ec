"""
CLI パッケージ。
"""
