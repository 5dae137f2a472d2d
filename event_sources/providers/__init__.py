"""
Event source providers.

Available providers:
- ForexFactoryCalendarSource: Forex Factory HTML calendar (first success)
- ForexFactoryFeedSource: Forex Factory JSON weekly feed
- InvestingCalendarSource: Investing.com calendar
- FXStreetCalendarSource: FXStreet calendar
- YahooFinanceNewsSource / MarketWatchNewsSource: currency headlines
- TradingEconomicsSource: calendar API (key required)
- FREDSource: US macro series (key required)
- NewsAPISource: news API (key required)
- AlphaVantageNewsSource: pre-scored news sentiment (key required)
- SimulatedCalendarSource: seeded offline events (disabled by default)
"""

from ..config import (
    ALPHA_VANTAGE,
    FOREXFACTORY,
    FOREXFACTORY_FEED,
    FRED,
    FXSTREET,
    INVESTING,
    MARKETWATCH,
    NEWSAPI,
    SIMULATED,
    TRADINGECONOMICS,
    YAHOO_FINANCE,
)
from .alphavantage import AlphaVantageNewsSource
from .forexfactory import ForexFactoryCalendarSource, ForexFactoryFeedSource
from .fred import FREDSource
from .fxstreet import FXStreetCalendarSource
from .investing import InvestingCalendarSource
from .news_sites import MarketWatchNewsSource, YahooFinanceNewsSource
from .newsapi import NewsAPISource
from .simulated import SimulatedCalendarSource
from .tradingeconomics import TradingEconomicsSource


# Source name -> adapter class, in default registration order
PROVIDERS = {
    FOREXFACTORY: ForexFactoryCalendarSource,
    FOREXFACTORY_FEED: ForexFactoryFeedSource,
    INVESTING: InvestingCalendarSource,
    FXSTREET: FXStreetCalendarSource,
    TRADINGECONOMICS: TradingEconomicsSource,
    FRED: FREDSource,
    YAHOO_FINANCE: YahooFinanceNewsSource,
    MARKETWATCH: MarketWatchNewsSource,
    NEWSAPI: NewsAPISource,
    ALPHA_VANTAGE: AlphaVantageNewsSource,
    SIMULATED: SimulatedCalendarSource,
}


__all__ = [
    "PROVIDERS",
    "AlphaVantageNewsSource",
    "ForexFactoryCalendarSource",
    "ForexFactoryFeedSource",
    "FREDSource",
    "FXStreetCalendarSource",
    "InvestingCalendarSource",
    "MarketWatchNewsSource",
    "NewsAPISource",
    "SimulatedCalendarSource",
    "TradingEconomicsSource",
    "YahooFinanceNewsSource",
]
