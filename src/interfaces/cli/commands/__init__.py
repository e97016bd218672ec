"""
CLI サブコマンド群。
"""
