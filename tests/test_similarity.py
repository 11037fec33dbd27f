from newsdesk.services.similarity import DUPLICATE_THRESHOLD, title_similarity, tokenize

def test_identical_titles():
    assert title_similarity("OpenAI ships new model", "OpenAI ships new model") == 1.0

def test_disjoint_titles():
    assert title_similarity("Rust compiler release", "Football transfer window") == 0.0

def test_symmetric():
    a, b = "Apple unveils new chip for laptops", "New Apple chip unveiled today"
    assert title_similarity(a, b) == title_similarity(b, a)

def test_short_tokens_and_punctuation_ignored():
    assert tokenize("AI is on the rise!") == {"the", "rise"}

def test_empty_titles():
    assert title_similarity("", "") == 1.0
    assert title_similarity("Something here", "") == 0.0

def test_threshold_value():
    assert DUPLICATE_THRESHOLD == 0.7
