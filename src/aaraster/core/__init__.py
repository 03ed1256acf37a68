"""数値型・パターン・サンプリング・FXAA・設定。"""
