"""画像バッファの書き出し。"""
