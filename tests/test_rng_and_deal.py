import unittest

from engine.cards import DECK_SIZE
from engine.deal import MAX_SEED, TABLEAU_COUNTS, build_deck, deal, new_game, shuffle_deck
from engine.rng import MASK32, RngState, next_u32, seed_rng


class RngTestCase(unittest.TestCase):
    def test_same_seed_gives_same_stream(self):
        a = seed_rng(12345)
        b = seed_rng(12345)
        for _ in range(20):
            va, a = next_u32(a)
            vb, b = next_u32(b)
            self.assertEqual(va, vb)
            self.assertTrue(0 <= va <= MASK32)

    def test_next_u32_does_not_mutate_state(self):
        state = seed_rng(7)
        first, _ = next_u32(state)
        again, _ = next_u32(state)
        self.assertEqual(first, again)

    def test_rejects_bad_seeds(self):
        for bad in (0, -5, True, 1.5, "3"):
            with self.assertRaises(ValueError):
                seed_rng(bad)

    def test_large_seed_is_accepted(self):
        state = seed_rng(2**40 + 3)
        self.assertTrue(any(state.words))

    def test_seed_one_reference_values(self):
        state = seed_rng(1)
        self.assertEqual((2527132011, 314344336, 2535364964, 2041432039), state.words)
        outputs = []
        for _ in range(3):
            value, state = next_u32(state)
            outputs.append(value)
        self.assertEqual([3898016280, 503430273, 2109199260], outputs)

    def test_state_dict_roundtrip(self):
        _, state = next_u32(seed_rng(99))
        self.assertEqual(state, RngState.from_dict(state.to_dict()))


class DealTestCase(unittest.TestCase):
    def test_deal_is_deterministic(self):
        self.assertEqual(deal(42).pack(), deal(42).pack())
        self.assertEqual(deal(42).rng_state, deal(42).rng_state)

    def test_seed_one_reference_deal(self):
        expected = [
            [43, 12, 38],
            [48, 36, 21, 2],
            [15, 16, 47, 37, 41],
            [29, 5, 24, 8, 25, 31],
            [35, 4, 27, 7, 23, 44, 30],
            [45, 13, 40, 34, 33, 9, 22, 50],
            [49, 11, 19, 0, 32, 18, 3, 14, 10],
            [51, 6, 39, 17, 46, 1, 20, 26, 42, 28],
        ]
        self.assertEqual(expected, [[card.id for card in pile] for pile in deal(1).tableau])

    def test_different_seeds_give_different_deals(self):
        self.assertNotEqual(deal(1).pack(), deal(2).pack())

    def test_layout(self):
        state = deal(2024)
        self.assertEqual(list(TABLEAU_COUNTS), [len(pile) for pile in state.tableau])
        self.assertEqual(list(range(DECK_SIZE)), state.card_ids())
        for pile in state.tableau:
            self.assertTrue(pile[-1].face_up)
            self.assertFalse(any(card.face_up for card in pile[:-1]))
        self.assertEqual(0, state.foundation_count())
        self.assertEqual([], state.move_history)
        self.assertIsNone(state.last_move)

    def test_round_robin_rows(self):
        rng = seed_rng(31)
        deck = build_deck()
        shuffle_deck(deck, rng)
        state = deal(31)
        # First row takes one card per pile, left to right.
        self.assertEqual([card.id for card in deck[:8]], [pile[0].id for pile in state.tableau])
        # Pile 0 is full after row 3, so row 4 starts at pile 1.
        self.assertEqual(deck[24].id, state.tableau[1][3].id)

    def test_shuffle_is_a_permutation(self):
        deck = build_deck()
        shuffle_deck(deck, seed_rng(5))
        self.assertEqual(list(range(DECK_SIZE)), sorted(card.id for card in deck))
        self.assertNotEqual(list(range(DECK_SIZE)), [card.id for card in deck])

    def test_new_game_picks_seed(self):
        state = new_game()
        self.assertTrue(1 <= state.seed < MAX_SEED)
        self.assertEqual(deal(state.seed).pack(), state.pack())
        self.assertEqual(77, new_game(77).seed)

    def test_deal_rejects_zero(self):
        with self.assertRaises(ValueError):
            deal(0)


if __name__ == "__main__":
    unittest.main()
