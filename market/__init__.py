"""
Market data sources: CoinGecko price/volume/OHLC and the Fear & Greed Index.
"""
