import os
import shutil
import tempfile
import unittest

from tmxrw.errors import NotFoundError, TmxParseError
from tmxrw.parser import TmxParser
from tmxrw.store import TranslationStore
from tmxrw.tmx_obj import Missing

SAMPLE_TMX = """<?xml version="1.0" encoding="UTF-8"?>
<tmx version="1.4">
  <header adminlang="en" creationtool="Other" creationtoolversion="9" datatype="xml" o-tmf="XLIFF" segtype="block" srclang="en">
    <prop type="x-project">demo</prop>
    <note>header note</note>
  </header>
  <body>
    <tu tuid="greet" usagecount="4">
      <prop type="x-domain">ui</prop>
      <note>ignored</note>
      <tuv xml:lang="en"><seg>Hello</seg></tuv>
      <tuv xml:lang="fr-FR"><seg><![CDATA[Bonjour & <bienvenue>]]></seg></tuv>
    </tu>
    <tu>
      <tuv xml:lang="en"><seg>No identifier</seg></tuv>
    </tu>
    <tu tuid="legacy">
      <tuv lang="de"><seg>Alte Sprache</seg></tuv>
      <tuv><seg>No language</seg></tuv>
    </tu>
    <tu tuid="blank">
      <tuv xml:lang="en"><seg/></tuv>
    </tu>
    <!-- trailing comment -->
  </body>
</tmx>
"""


class TestTmxParser(unittest.TestCase):
    def setUp(self):
        self.test_dir = tempfile.mkdtemp(prefix="tmxrw_parser_")
        self.sample_tmx = os.path.join(self.test_dir, "sample.tmx")
        with open(self.sample_tmx, "w", encoding="utf-8") as f:
            f.write(SAMPLE_TMX)

    def tearDown(self):
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def _write(self, name, content, encoding="utf-8"):
        path = os.path.join(self.test_dir, name)
        with open(path, "w", encoding=encoding) as f:
            f.write(content)
        return path

    def test_parse_sample(self):
        store = TranslationStore()
        stats = TmxParser(self.sample_tmx).parse(store)

        self.assertEqual(list(store), ["greet", "legacy", "blank"])
        self.assertEqual(store.get("greet"), {"en": "Hello", "fr-FR": "Bonjour & <bienvenue>"})
        self.assertEqual(store.get("legacy"), {"de": "Alte Sprache"})
        self.assertEqual(store.get("blank", "en"), "")

        self.assertEqual(stats.units, 3)
        self.assertEqual(stats.segments, 4)
        self.assertEqual(stats.skipped_units, 1)
        # Segment of the tu without tuid and the tuv without language
        self.assertEqual(stats.skipped_segments, 2)

    def test_header_and_props_are_not_loaded(self):
        store = TranslationStore()
        TmxParser(self.sample_tmx).parse(store)
        self.assertEqual(store.get_attributes("greet"), {})
        self.assertEqual(store.get_properties("greet"), {})

    def test_language_does_not_leak_into_next_unit(self):
        path = self._write("leak.tmx", """<tmx version="1.4"><header/><body>
<tu tuid="a"><tuv xml:lang="en"><seg>A</seg></tuv></tu>
<tu tuid="b"><seg>orphan</seg></tu>
</body></tmx>""")
        store = TranslationStore()
        stats = TmxParser(path).parse(store)
        self.assertIs(store.get("b"), Missing.UNIT)
        self.assertEqual(stats.skipped_segments, 1)

    def test_seg_starting_with_markup_is_skipped(self):
        path = self._write("inline.tmx", """<tmx version="1.4"><header/><body>
<tu tuid="a"><tuv xml:lang="en"><seg><ph x="1"/>after tag</seg></tuv>
<tuv xml:lang="fr"><seg>avant<ph x="1"/> apres</seg></tuv></tu>
</body></tmx>""")
        store = TranslationStore()
        stats = TmxParser(path).parse(store)
        self.assertEqual(store.get("a"), {"fr": "avant"})
        self.assertEqual(stats.skipped_segments, 1)

    def test_namespaced_document(self):
        path = self._write("ns.tmx", """<?xml version="1.0"?>
<tmx xmlns="urn:example:tmx" version="1.4"><header/><body>
<tu tuid="x"><tuv xml:lang="en"><seg>Namespaced</seg></tuv></tu>
</body></tmx>""")
        store = TranslationStore()
        TmxParser(path).parse(store)
        self.assertEqual(store.get("x", "en"), "Namespaced")

    def test_unknown_elements_are_ignored(self):
        path = self._write("unknown.tmx", """<tmx version="1.4"><header/><body>
<group><tu tuid="x" foo="bar"><ude/><tuv xml:lang="en" extra="1"><seg>Deep</seg></tuv></tu></group>
</body></tmx>""")
        store = TranslationStore()
        TmxParser(path).parse(store)
        self.assertEqual(store.get("x", "en"), "Deep")

    def test_explicit_encoding(self):
        path = self._write(
            "latin1.tmx",
            '<?xml version="1.0"?><tmx version="1.4"><header/><body>'
            '<tu tuid="c"><tuv xml:lang="fr"><seg>Café</seg></tuv></tu></body></tmx>',
            encoding="latin-1",
        )
        store = TranslationStore()
        TmxParser(path, encoding="ISO-8859-1").parse(store)
        self.assertEqual(store.get("c", "fr"), "Café")

    def test_missing_file(self):
        with self.assertRaises(NotFoundError):
            TmxParser(os.path.join(self.test_dir, "nope.tmx")).parse(TranslationStore())

    def test_malformed_xml(self):
        path = self._write("broken.tmx", "<tmx><body><tu tuid='a'><tuv xml:lang='en'><seg>x</tuv></body>")
        with self.assertRaises(TmxParseError):
            TmxParser(path).parse(TranslationStore())


if __name__ == "__main__":
    unittest.main()
