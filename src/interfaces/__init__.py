"""
外部インターフェース層（CLI・ワーカー）。
"""
