"""Provider payload fixtures for lyrics tests."""

import pytest

SEARCH_XML = """<?xml version="1.0" encoding="utf-8"?>
<ArrayOfSearchLyricResult xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" \
xmlns:xsd="http://www.w3.org/2001/XMLSchema" xmlns="http://api.chartlyrics.com/">
  <SearchLyricResult>
    <TrackId>0</TrackId>
    <LyricChecksum>0</LyricChecksum>
    <LyricId>0</LyricId>
    <Artist>Queen</Artist>
    <Song>Bohemian Rhapsody (Live)</Song>
  </SearchLyricResult>
  <SearchLyricResult>
    <TrackId>0</TrackId>
    <LyricChecksum>a4a56a99ee00cd8e67872a7764d6f9c6</LyricChecksum>
    <LyricId>1710</LyricId>
    <SongUrl>http://www.chartlyrics.com/28h-wbmg/Bohemian+Rhapsody.aspx</SongUrl>
    <Artist>Queen</Artist>
    <Song>Bohemian Rhapsody</Song>
    <SongRank>9</SongRank>
  </SearchLyricResult>
  <SearchLyricResult xsi:nil="true" />
</ArrayOfSearchLyricResult>
"""

LYRIC_XML = """<?xml version="1.0" encoding="utf-8"?>
<GetLyricResult xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" \
xmlns:xsd="http://www.w3.org/2001/XMLSchema" xmlns="http://api.chartlyrics.com/">
  <TrackId>0</TrackId>
  <LyricChecksum>a4a56a99ee00cd8e67872a7764d6f9c6</LyricChecksum>
  <LyricId>1710</LyricId>
  <LyricSong>Bohemian Rhapsody</LyricSong>
  <LyricArtist>Queen</LyricArtist>
  <LyricRank>9</LyricRank>
  <Lyric>Is this the real life?
Is this just fantasy?

Caught in a landslide</Lyric>
</GetLyricResult>
"""


@pytest.fixture
def chartlyrics_search_xml() -> str:
    return SEARCH_XML


@pytest.fixture
def chartlyrics_lyric_xml() -> str:
    return LYRIC_XML
