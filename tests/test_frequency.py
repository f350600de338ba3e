"""Tests for the frequency list parsers and zip loaders."""
import pytest

from tango_import.errors import FormatError, NotFoundError
from tango_import.frequency import (
    FrequencyEntry,
    FrequencyMetrics,
    FrequencyPair,
    load_entries,
    load_pairs,
    parse_entry,
    parse_pair,
)


ENTRY_LINE = "の\t783900\t52752.36\t346504\t52.1601\t588537\t49415.37\t315749\t47.3302\t942403\t66742.42\t271217\t86.6741"
HEADER_LINE = "Word\tBlogFreq\tBlogFreqPm\tBlogCD\tBlogCDPc\tTwitterFreq\tTwitterFreqPm\tTwitterCD\tTwitterCDPc\tNewsFreq\tNewsFreqPm\tNewsCD\tNewsCDPc"


class TestParseEntry:
    """13-field frequency entry grammar."""

    def test_full_entry(self):
        assert parse_entry(ENTRY_LINE) == FrequencyEntry(
            key="の",
            blog=FrequencyMetrics(freq=783900, freq_pm="52752.36", cd=346504, cd_pc="52.1601"),
            twitter=FrequencyMetrics(freq=588537, freq_pm="49415.37", cd=315749, cd_pc="47.3302"),
            news=FrequencyMetrics(freq=942403, freq_pm="66742.42", cd=271217, cd_pc="86.6741"),
        )

    def test_decimals_preserved_as_text(self):
        line = "x\t1\t1.50\t1\t0.0100\t2\t2\t2\t2\t3\t3.0\t3\t3"
        entry = parse_entry(line)
        assert entry.blog.freq_pm == "1.50"
        assert entry.blog.cd_pc == "0.0100"
        assert entry.twitter.freq_pm == "2"
        assert entry.news.freq_pm == "3.0"

    def test_trailing_whitespace_ignored(self):
        assert parse_entry(ENTRY_LINE + "\r\n").key == "の"

    def test_blank_line(self):
        assert parse_entry("") is None
        assert parse_entry("   \t  ") is None

    def test_blank_key(self):
        assert parse_entry(" " + ENTRY_LINE[1:]) is None

    def test_wrong_field_count(self):
        with pytest.raises(FormatError) as exc_info:
            parse_entry("の\t1\t2")
        assert str(exc_info.value) == "parsing frequency entry: invalid line"

    def test_non_numeric_integer(self):
        line = ENTRY_LINE.replace("588537", "58x537")
        with pytest.raises(FormatError) as exc_info:
            parse_entry(line)
        assert "twitter freq" in str(exc_info.value)

    def test_malformed_decimal(self):
        line = ENTRY_LINE.replace("66742.42", "66742.")
        with pytest.raises(FormatError) as exc_info:
            parse_entry(line)
        assert "news freq_pm" in str(exc_info.value)

    def test_signed_decimal_rejected(self):
        line = ENTRY_LINE.replace("52.1601", "-52.1601")
        with pytest.raises(FormatError) as exc_info:
            parse_entry(line)
        assert "blog cd_pc" in str(exc_info.value)

    def test_signed_integer_accepted(self):
        line = ENTRY_LINE.replace("346504", "-346504")
        assert parse_entry(line).blog.cd == -346504

    def test_integer_out_of_range(self):
        line = ENTRY_LINE.replace("783900", str(1 << 63))
        with pytest.raises(FormatError):
            parse_entry(line)

    def test_non_ascii_digits_rejected(self):
        line = ENTRY_LINE.replace("783900", "７８３９００")
        with pytest.raises(FormatError):
            parse_entry(line)


class TestParsePair:
    """2-field count/key grammar."""

    def test_simple_pair(self):
        assert parse_pair("21086758\tの") == FrequencyPair(key="の", count=21086758)

    def test_surrounding_tabs_trimmed(self):
        assert parse_pair("\t1234\ttest\t") == FrequencyPair(key="test", count=1234)

    def test_blank_line(self):
        assert parse_pair("") is None
        assert parse_pair(" \t ") is None

    def test_wrong_field_count(self):
        with pytest.raises(FormatError) as exc_info:
            parse_pair("1\ta\tb")
        assert str(exc_info.value) == "parsing pair frequency: invalid line"

    def test_single_field(self):
        with pytest.raises(FormatError):
            parse_pair("1234")

    def test_non_numeric_count(self):
        with pytest.raises(FormatError):
            parse_pair("many\tの")


class TestLoadEntries:
    """Loading the word and character lists from the info zip."""

    def test_loads_both_lists(self, workdir, make_zip):
        make_zip("vendor/data/frequency/Jap.Freq.2.zip", {
            "Jap.Freq.2/Jap.Freq.2.txt": "\ufeff" + HEADER_LINE + "\n" + ENTRY_LINE + "\n\n",
            "Jap.Freq.2/Jap.Char.Freq.2.txt": HEADER_LINE + "\n" + ENTRY_LINE.replace("の", "日") + "\n",
        })
        words, chars = load_entries()
        assert [w.key for w in words] == ["の"]
        assert [c.key for c in chars] == ["日"]
        assert words[0].blog.freq == 783900

    def test_error_prefixed_with_list_name(self, workdir, make_zip):
        make_zip("freq.zip", {
            "Jap.Freq.2.txt": ENTRY_LINE + "\n",
            "Jap.Char.Freq.2.txt": "bad\tline\n",
        })
        with pytest.raises(FormatError) as exc_info:
            load_entries("freq.zip")
        assert str(exc_info.value) == "loading char entries: parsing frequency entry: invalid line"
        assert exc_info.value.source == "Jap.Char.Freq.2.txt:1"

    def test_missing_entry_file(self, workdir, make_zip):
        make_zip("freq.zip", {"Jap.Freq.2.txt": ENTRY_LINE + "\n"})
        with pytest.raises(NotFoundError) as exc_info:
            load_entries("freq.zip")
        assert str(exc_info.value).startswith("loading char entries: ")

    def test_missing_archive(self, workdir):
        with pytest.raises(NotFoundError):
            load_entries("vendor/missing-8c1f.zip")


class TestLoadPairs:
    """Loading the three count lists from the novel analysis zip."""

    def make_archive(self, make_zip, jparser="10\tの\n", mecab="20\tは\n", kanji="30\t日\n"):
        make_zip("vendor/data/frequency/Innocent_Novel_Analysis_120526.zip", {
            "word_freq_report.txt": jparser,
            "word_freq_report_mecab.txt": mecab,
            "kanji_freq_report.txt": kanji,
        })

    def test_loads_three_lists(self, workdir, make_zip):
        self.make_archive(make_zip)
        jparser, mecab, kanji = load_pairs()
        assert jparser == [FrequencyPair(key="の", count=10)]
        assert mecab == [FrequencyPair(key="は", count=20)]
        assert kanji == [FrequencyPair(key="日", count=30)]

    def test_error_prefixed_with_list_name(self, workdir, make_zip):
        self.make_archive(make_zip, mecab="20\tは\nbroken\n")
        with pytest.raises(FormatError) as exc_info:
            load_pairs()
        assert str(exc_info.value) == "loading mecab entries: parsing pair frequency: invalid line"

    def test_custom_file_names(self, workdir, make_zip):
        make_zip("pairs.zip", {"a.txt": "1\tx\n", "b.txt": "2\ty\n", "c.txt": "3\tz\n"})
        jparser, mecab, kanji = load_pairs("pairs.zip", {"jparser": "a.txt", "mecab": "b.txt", "kanji": "c.txt"})
        assert [p.key for p in jparser + mecab + kanji] == ["x", "y", "z"]
