import unittest

from cineverso.documents import (
    SERVER_TIMESTAMP,
    ArrayRemove,
    ArrayUnion,
    DocumentNotFoundError,
    MemoryDocumentStore,
    apply_field_updates,
    resolve_server_timestamps,
)
from cineverso.models import ListEntry, MediaKind, MediaReference, SyncResult, WatchedEpisodeMark
from cineverso.utils import (
    chunk_updates,
    episode_field_path,
    episode_numbers,
    local_watched_key,
)


NOW = '2024-05-01T12:00:00+00:00'


class FieldUpdateTests(unittest.TestCase):
    def test_dotted_paths_create_nested_mappings(self):
        result = apply_field_updates({}, {'series_42.s1e1': {'episode_number': 1}}, NOW)

        self.assertEqual(result, {'series_42': {'s1e1': {'episode_number': 1}}})

    def test_dotted_paths_keep_sibling_fields(self):
        data = {'series_42': {'s1e1': {'episode_number': 1}}, 'series_7': {'s1e1': None}}

        result = apply_field_updates(data, {'series_42.s1e2': {'episode_number': 2}}, NOW)

        self.assertEqual(set(result['series_42']), {'s1e1', 's1e2'})
        self.assertEqual(result['series_7'], {'s1e1': None})
        self.assertNotIn('s1e2', data['series_42'])

    def test_null_value_is_stored_not_deleted(self):
        result = apply_field_updates({'series_42': {'s1e1': {'x': 1}}}, {'series_42.s1e1': None}, NOW)

        self.assertIn('s1e1', result['series_42'])
        self.assertIsNone(result['series_42']['s1e1'])

    def test_server_timestamp_is_resolved(self):
        result = apply_field_updates({}, {'a.b': {'watched_at_server': SERVER_TIMESTAMP}}, NOW)

        self.assertEqual(result['a']['b']['watched_at_server'], NOW)
        self.assertEqual(resolve_server_timestamps([SERVER_TIMESTAMP, 1], NOW), [NOW, 1])

    def test_array_union_skips_present_items(self):
        data = {'favorites': [{'id': 1}]}

        result = apply_field_updates(data, {'favorites': ArrayUnion({'id': 1}, {'id': 2})}, NOW)

        self.assertEqual(result['favorites'], [{'id': 1}, {'id': 2}])

    def test_array_union_creates_missing_array(self):
        result = apply_field_updates({}, {'watchlist': ArrayUnion('a')}, NOW)

        self.assertEqual(result['watchlist'], ['a'])

    def test_array_remove_drops_every_equal_item(self):
        data = {'favorites': [{'id': 1}, {'id': 2}, {'id': 1}]}

        result = apply_field_updates(data, {'favorites': ArrayRemove({'id': 1})}, NOW)

        self.assertEqual(result['favorites'], [{'id': 2}])


class MemoryDocumentStoreTests(unittest.TestCase):
    def test_update_of_missing_document_raises(self):
        store = MemoryDocumentStore()

        with self.assertRaises(DocumentNotFoundError):
            store.update_fields('watchHistory', 'nobody', {'series_1.s1e1': None})

    def test_documents_are_returned_as_copies(self):
        store = MemoryDocumentStore()
        store.set_document('users', 'u1', {'favorites': []})

        store.get_document('users', 'u1')['favorites'].append('changed')

        self.assertEqual(store.get_document('users', 'u1'), {'favorites': []})


class KeyAndChunkTests(unittest.TestCase):
    def test_keys(self):
        self.assertEqual(episode_field_path(1399, 2, 10), 'series_1399.s2e10')
        self.assertEqual(local_watched_key(1399), 'series_1399_watched')

    def test_chunks_preserve_order_and_size(self):
        updates = {f'p{n}': n for n in range(45)}

        chunks = chunk_updates(updates, 20)

        self.assertEqual([len(chunk) for chunk in chunks], [20, 20, 5])
        self.assertEqual(list(chunks[2]), ['p40', 'p41', 'p42', 'p43', 'p44'])
        self.assertEqual(chunk_updates({}, 20), [])

    def test_chunk_size_must_be_positive(self):
        with self.assertRaises(ValueError):
            chunk_updates({'a': 1}, 0)

    def test_episode_numbers_accepts_tmdb_episodes_and_ints(self):
        self.assertEqual(
            episode_numbers([{'episode_number': 1, 'name': 'Pilot'}, 2]),
            [(1, 'Pilot'), (2, None)]
        )


class ModelTests(unittest.TestCase):
    def test_media_kind_aliases(self):
        self.assertIs(MediaKind.parse('series'), MediaKind.SERIES)
        self.assertIs(MediaKind.parse('movie'), MediaKind.MOVIE)
        with self.assertRaises(ValueError):
            MediaKind.parse('person')

    def test_list_entry_clamps_rating_and_round_trips(self):
        entry = ListEntry(MediaReference(603, MediaKind.MOVIE), 'The Matrix', average_rating=12)

        self.assertEqual(entry.average_rating, 10.0)
        self.assertEqual(ListEntry.from_document(entry.to_document()), entry)

    def test_list_entry_accepts_series_name(self):
        entry = ListEntry.from_document({'id': 1399, 'media_type': 'tv', 'name': 'Game of Thrones'})

        self.assertEqual(entry.title, 'Game of Thrones')
        self.assertIs(entry.media.media_kind, MediaKind.SERIES)

    def test_watched_mark_rejects_zero_positions(self):
        with self.assertRaises(ValueError):
            WatchedEpisodeMark(42, 0, 1, watched_at_local=0)

    def test_sync_result_truthiness(self):
        self.assertTrue(SyncResult.ok())
        self.assertTrue(SyncResult.local_only('remote_unavailable'))
        self.assertFalse(SyncResult.failed('login_required'))


if __name__ == '__main__':
    unittest.main()
