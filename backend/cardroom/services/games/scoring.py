from typing import Iterable, List, Dict, Any

from .cards import Card

BUST_LIMIT = 21


def card_value(card: Card) -> int:
    if card.is_ace:
        return 11
    if card.rank in ('J', 'Q', 'K'):
        return 10
    return int(card.rank)


def hand_value(hand: Iterable[Card]) -> int:
    """Best blackjack total for ``hand``.

    Aces count 11 and are softened to 1, one at a time, while the total is
    over 21. Always derived from the cards themselves.
    """
    total = 0
    soft_aces = 0
    for card in hand:
        total += card_value(card)
        if card.is_ace:
            soft_aces += 1
    while total > BUST_LIMIT and soft_aces:
        total -= 10
        soft_aces -= 1
    return total


def is_bust(hand: Iterable[Card]) -> bool:
    return hand_value(hand) > BUST_LIMIT


def score_round(members) -> Dict[str, Any]:
    """Settle a finished round.

    Every non-busted member holding the best total wins; ties produce several
    winners and an all-bust table produces none.
    """
    results: List[Dict[str, Any]] = []
    best = None
    for player in members:
        value = hand_value(player.hand)
        results.append({
            'player_id': player.id,
            'busted': player.is_busted,
            'value': value,
            'hand': [c.to_dict() for c in player.hand],
        })
        if not player.is_busted and (best is None or value > best):
            best = value
    winners = [r['player_id'] for r in results if not r['busted'] and r['value'] == best]
    names = {p.id: p.display_name for p in members}
    if winners:
        summary = f"Winner(s) with {best}: " + ', '.join(names[w] for w in winners)
    else:
        summary = 'No winners, all busted.'
    return {'results': results, 'winners': winners, 'summary_text': summary}
